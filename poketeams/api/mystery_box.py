"""
Mystery box API endpoint.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from poketeams.api.deps import AllocatorDep, CurrentUser, SessionDep
from poketeams.api.schemas import CamelModel, PurchaseResponse
from poketeams.models.rarity import RarityTier
from poketeams.services.purchase_ledger import purchase_mystery_box

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mystery-box", tags=["mystery-box"])

MYSTERY_BOX_POOL_MAX = 1000


class MysteryBoxPurchase(PurchaseResponse):
    rarity: RarityTier


class MysteryBoxResponse(CamelModel):
    message: str
    data: MysteryBoxPurchase


@router.post("", response_model=MysteryBoxResponse, status_code=status.HTTP_201_CREATED)
async def open_mystery_box(
    session: SessionDep,
    user: CurrentUser,
    allocator: AllocatorDep,
    limit: Annotated[int | None, Query(ge=1, le=MYSTERY_BOX_POOL_MAX)] = None,
) -> MysteryBoxResponse:
    """
    Open a mystery box.

    The Pokémon is drawn by rarity tier from the cached catalog. `limit`
    sets the catalog pool size only when the cache has to be refreshed.
    """
    logger.info("Processing mystery box purchase for user %d", user.id)
    purchase, rarity = await purchase_mystery_box(session, allocator, user.id, limit)

    base = PurchaseResponse.model_validate(purchase)
    return MysteryBoxResponse(
        message=f"Congratulations! You got a {rarity.value} Pokemon!",
        data=MysteryBoxPurchase(**base.model_dump(), rarity=rarity),
    )
