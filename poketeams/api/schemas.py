"""
Response models shared across routers.

All request and response bodies use camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from poketeams.models.pagination import PaginationMetadata


class CamelModel(BaseModel):
    """Base model that reads snake_case attributes and speaks camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserResponse(CamelModel):
    """Public view of an account. The password hash is never included."""

    id: int
    name: str
    last_name: str
    email: str
    role: str
    created_at: datetime


class PurchaseResponse(CamelModel):
    id: int
    pokemon_id: int
    pokemon_name: str
    pokemon_image: str | None = None
    pokemon_types: list[str] = Field(default_factory=list)
    price: float
    purchased_at: datetime


class PaginatedUsersResponse(CamelModel):
    data: list[UserResponse]
    pagination: PaginationMetadata


class PaginatedPurchasesResponse(CamelModel):
    data: list[PurchaseResponse]
    pagination: PaginationMetadata
