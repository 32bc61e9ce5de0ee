"""
Card API endpoints.

Catalog browsing, direct purchase and the caller's collection.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import Field

from poketeams.api.deps import CatalogClientDep, CurrentUser, SessionDep
from poketeams.api.schemas import CamelModel, PaginatedPurchasesResponse, PurchaseResponse
from poketeams.config import DEFAULT_LIMIT, DEFAULT_PAGE, settings
from poketeams.services.purchase_ledger import list_collection, purchase_item

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])

CATALOG_PAGE_MAX = 1000


class CatalogEntryResponse(CamelModel):
    name: str
    url: str


class CatalogPageResponse(CamelModel):
    """One page of the PokéAPI listing, passed through."""

    count: int
    next: str | None = None
    previous: str | None = None
    results: list[CatalogEntryResponse] = Field(default_factory=list)


class PurchaseRequest(CamelModel):
    pokemon_name: str = Field(
        ...,
        min_length=1,
        description="Pokémon name or id, e.g. 'pikachu' or 'Mr Mime'",
        examples=["pikachu"],
    )


class PurchaseResultResponse(CamelModel):
    message: str
    data: PurchaseResponse


@router.get("", response_model=CatalogPageResponse)
async def get_catalog(
    catalog: CatalogClientDep,
    limit: Annotated[int, Query(ge=1, le=CATALOG_PAGE_MAX)] = settings.pokeapi_item_limit,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> CatalogPageResponse:
    """List Pokémon available in the catalog."""
    page = await catalog.list_page(limit, offset)
    return CatalogPageResponse(
        count=page.count,
        next=page.next,
        previous=page.previous,
        results=[CatalogEntryResponse(name=e.name, url=e.url) for e in page.results],
    )


@router.post(
    "/purchase", response_model=PurchaseResultResponse, status_code=status.HTTP_201_CREATED
)
async def purchase_pokemon(
    request: PurchaseRequest,
    session: SessionDep,
    user: CurrentUser,
    catalog: CatalogClientDep,
) -> PurchaseResultResponse:
    """Buy a Pokémon. Each Pokémon can be bought directly only once per user."""
    purchase = await purchase_item(session, catalog, user.id, request.pokemon_name)
    return PurchaseResultResponse(
        message=f"Pokemon {purchase.pokemon_name} purchased successfully",
        data=PurchaseResponse.model_validate(purchase),
    )


@router.get("/collection", response_model=PaginatedPurchasesResponse)
async def get_collection(
    session: SessionDep,
    user: CurrentUser,
    page: Annotated[int, Query()] = DEFAULT_PAGE,
    limit: Annotated[int, Query()] = DEFAULT_LIMIT,
) -> PaginatedPurchasesResponse:
    """The caller's purchases, most recent first."""
    purchases, pagination = await list_collection(session, user.id, page, limit)
    return PaginatedPurchasesResponse(
        data=[PurchaseResponse.model_validate(p) for p in purchases],
        pagination=pagination,
    )
