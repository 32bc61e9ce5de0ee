"""
Failure classification for all API endpoints.

Every failure the service knows how to explain is raised as a subclass of
`KnownError`, tagged with a `FailureKind`. The HTTP status is derived from
the kind through `STATUS_BY_KIND`, so a kind always renders the same way
no matter where it was raised.

Anything that is NOT a `KnownError` is an unknown failure: it is logged and
rendered as a generic 500 without leaking internals.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_REQUEST = "invalid_request"

    # Identity failures
    AUTHENTICATION_REQUIRED = "authentication_required"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    FORBIDDEN = "forbidden"

    # Resource failures
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    DUPLICATE_PURCHASE = "duplicate_purchase"
    CONCURRENT_MODIFICATION = "concurrent_modification"

    # Team constraint violations
    CAPACITY_EXCEEDED = "capacity_exceeded"
    TYPE_MISMATCH = "type_mismatch"

    # Service failures
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    NO_ITEMS_AVAILABLE = "no_items_available"

    # Internal errors
    STORAGE_ERROR = "storage_error"
    INTERNAL_ERROR = "internal_error"


STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.INVALID_REQUEST: 400,
    FailureKind.AUTHENTICATION_REQUIRED: 401,
    FailureKind.INVALID_CREDENTIALS: 401,
    FailureKind.INVALID_TOKEN: 403,
    FailureKind.FORBIDDEN: 403,
    FailureKind.NOT_FOUND: 404,
    FailureKind.ALREADY_EXISTS: 409,
    FailureKind.DUPLICATE_PURCHASE: 409,
    FailureKind.CONCURRENT_MODIFICATION: 409,
    FailureKind.CAPACITY_EXCEEDED: 400,
    FailureKind.TYPE_MISMATCH: 400,
    FailureKind.CATALOG_UNAVAILABLE: 502,
    FailureKind.NO_ITEMS_AVAILABLE: 500,
    FailureKind.STORAGE_ERROR: 500,
    FailureKind.INTERNAL_ERROR: 500,
}


class ErrorResponse(BaseModel):
    """Body returned for every classified failure."""

    message: str = Field(..., description="User-appropriate explanation of what went wrong")
    internal_code: str = Field(..., description="Stable machine-readable failure code")


class FieldError(BaseModel):
    """A single field-level validation message."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Body returned when request validation fails."""

    message: str = "Validation failed"
    errors: list[FieldError] = Field(default_factory=list)


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(self, kind: FailureKind, message: str, detail: str | None = None):
        self.kind = kind
        self.message = message
        self.detail = detail
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @property
    def internal_code(self) -> str:
        return self.kind.name

    def to_response(self) -> ErrorResponse:
        """Convert to the wire error body."""
        return ErrorResponse(message=self.message, internal_code=self.internal_code)


class InvalidRequestError(KnownError):
    def __init__(self, message: str):
        super().__init__(FailureKind.INVALID_REQUEST, message)


class AuthenticationRequiredError(KnownError):
    def __init__(self, message: str = "Access token required"):
        super().__init__(FailureKind.AUTHENTICATION_REQUIRED, message)


class InvalidCredentialsError(KnownError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(FailureKind.INVALID_CREDENTIALS, message)


class InvalidTokenError(KnownError):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(FailureKind.INVALID_TOKEN, message)


class ForbiddenError(KnownError):
    def __init__(self, message: str):
        super().__init__(FailureKind.FORBIDDEN, message)


class NotFoundError(KnownError):
    def __init__(self, message: str):
        super().__init__(FailureKind.NOT_FOUND, message)


class AlreadyExistsError(KnownError):
    def __init__(self, message: str):
        super().__init__(FailureKind.ALREADY_EXISTS, message)


class EmailAlreadyExistsError(AlreadyExistsError):
    """Registration conflict, reported against the `email` field."""

    field = "email"

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)


class DuplicatePurchaseError(KnownError):
    def __init__(self, pokemon_name: str):
        self.pokemon_name = pokemon_name
        super().__init__(
            FailureKind.DUPLICATE_PURCHASE,
            f"You have already purchased {pokemon_name}",
        )


class ConcurrentModificationError(KnownError):
    def __init__(self, message: str):
        super().__init__(FailureKind.CONCURRENT_MODIFICATION, message)


class CapacityExceededError(KnownError):
    def __init__(self, requested: int, current: int, maximum: int):
        self.requested = requested
        self.current = current
        self.maximum = maximum
        super().__init__(
            FailureKind.CAPACITY_EXCEEDED,
            f"Cannot add {requested} Pokémon. Team would exceed maximum size of "
            f"{maximum}. Current: {current}",
        )


class TypeMismatchError(KnownError):
    def __init__(self, incompatible_ids: list[int], allowed_types: list[str] | None = None):
        self.incompatible_ids = incompatible_ids
        self.allowed_types = allowed_types or []
        detail = f"Incompatible purchases: {incompatible_ids}"
        if self.allowed_types:
            detail += f"; allowed types: {', '.join(self.allowed_types)}"
        super().__init__(
            FailureKind.TYPE_MISMATCH,
            "Some Pokémon are incompatible with the team type",
            detail=detail,
        )


class CatalogUnavailableError(KnownError):
    def __init__(self, message: str = "Failed to fetch data from PokeAPI", detail: str | None = None):
        super().__init__(FailureKind.CATALOG_UNAVAILABLE, message, detail=detail)


class NoItemsAvailableError(KnownError):
    def __init__(self, message: str = "No pokemons available in any rarity tier"):
        super().__init__(FailureKind.NO_ITEMS_AVAILABLE, message)


class StorageError(KnownError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(FailureKind.STORAGE_ERROR, message, detail=detail)
