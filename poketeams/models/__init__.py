from poketeams.models.catalog import CatalogEntry, CatalogItem, CatalogPage
from poketeams.models.failure import (
    STATUS_BY_KIND,
    AlreadyExistsError,
    AuthenticationRequiredError,
    CapacityExceededError,
    CatalogUnavailableError,
    ConcurrentModificationError,
    DuplicatePurchaseError,
    EmailAlreadyExistsError,
    ErrorResponse,
    FailureKind,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidRequestError,
    InvalidTokenError,
    KnownError,
    NoItemsAvailableError,
    NotFoundError,
    StorageError,
    TypeMismatchError,
)
from poketeams.models.pagination import (
    PaginationMetadata,
    PaginationParams,
    calculate_pagination_metadata,
    create_pagination_params,
)
from poketeams.models.rarity import (
    RARITY_PROBABILITIES,
    TIER_RULES,
    RarityTier,
    TierRule,
    classify_weight,
)
from poketeams.models.team import UNIVERSAL_COMPATIBLE_TYPE, PokemonType, UserRole

__all__ = [
    "RARITY_PROBABILITIES",
    "STATUS_BY_KIND",
    "TIER_RULES",
    "UNIVERSAL_COMPATIBLE_TYPE",
    "AlreadyExistsError",
    "AuthenticationRequiredError",
    "CapacityExceededError",
    "CatalogEntry",
    "CatalogItem",
    "CatalogPage",
    "CatalogUnavailableError",
    "ConcurrentModificationError",
    "DuplicatePurchaseError",
    "EmailAlreadyExistsError",
    "ErrorResponse",
    "FailureKind",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidRequestError",
    "InvalidTokenError",
    "KnownError",
    "NoItemsAvailableError",
    "NotFoundError",
    "PaginationMetadata",
    "PaginationParams",
    "PokemonType",
    "RarityTier",
    "StorageError",
    "TierRule",
    "TypeMismatchError",
    "UserRole",
    "calculate_pagination_metadata",
    "classify_weight",
    "create_pagination_params",
]
