"""
Purchase ledger.

Records direct and mystery-box purchases and serves a user's paginated
collection. Direct purchases are limited to one per (user, Pokémon);
mystery-box purchases are not checked, so a box can hand out a Pokémon the
user already owns.
"""

import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from poketeams.config import MYSTERY_BOX_PRICE
from poketeams.db.operations import (
    create_purchase,
    get_purchase_by_owner_and_name,
    list_purchases_for_user,
)
from poketeams.models.db import PokemonPurchaseDB
from poketeams.models.failure import DuplicatePurchaseError, InvalidRequestError, StorageError
from poketeams.models.pagination import (
    PaginationMetadata,
    calculate_pagination_metadata,
    create_pagination_params,
)
from poketeams.models.rarity import RarityTier
from poketeams.services.catalog_client import CatalogSource
from poketeams.services.mystery_box import MysteryBoxAllocator
from poketeams.services.pricing import price_of

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_item_name(name: str) -> str:
    """Normalize user input to a PokéAPI slug ("  Mr Mime " -> "mr-mime")."""
    return _WHITESPACE.sub("-", name.strip().lower())


async def purchase_item(
    session: AsyncSession,
    catalog: CatalogSource,
    user_id: int,
    item_name: str,
) -> PokemonPurchaseDB:
    """
    Buy a Pokémon by name.

    Raises:
        InvalidRequestError: If the name is blank
        NotFoundError: If the catalog has no such Pokémon
        CatalogUnavailableError: If the catalog cannot be reached
        DuplicatePurchaseError: If the user already bought this Pokémon
        StorageError: If the purchase cannot be persisted
    """
    normalized_name = normalize_item_name(item_name)
    if not normalized_name:
        raise InvalidRequestError("pokemonName must not be blank")
    item = await catalog.get_item(normalized_name)

    try:
        existing = await get_purchase_by_owner_and_name(session, user_id, item.name)
        if existing is not None:
            logger.warning("User %d attempted to re-purchase %s", user_id, item.name)
            raise DuplicatePurchaseError(item.name)

        price = price_of(item)
        purchase = await create_purchase(session, user_id=user_id, item=item, price=price)
    except SQLAlchemyError as e:
        logger.exception("Error during Pokemon purchase for user %d", user_id)
        raise StorageError("Failed to complete Pokemon purchase") from e

    logger.info("User %d purchased %s for %s", user_id, item.name, price)
    return purchase


async def list_collection(
    session: AsyncSession,
    user_id: int,
    page: int,
    page_size: int,
) -> tuple[list[PokemonPurchaseDB], PaginationMetadata]:
    """
    Get a page of a user's purchases, most recent first.

    Page and page size below 1 are treated as 1.
    """
    params = create_pagination_params(page, page_size)
    try:
        purchases, total = await list_purchases_for_user(
            session, user_id, offset=params.offset, limit=params.limit
        )
    except SQLAlchemyError as e:
        logger.exception("Error retrieving Pokemon collection for user %d", user_id)
        raise StorageError("Failed to retrieve Pokemon collection") from e

    return purchases, calculate_pagination_metadata(params.page, params.limit, total)


async def purchase_mystery_box(
    session: AsyncSession,
    allocator: MysteryBoxAllocator,
    user_id: int,
    limit: int | None = None,
) -> tuple[PokemonPurchaseDB, RarityTier]:
    """
    Open a mystery box and record the Pokémon it yields.

    Args:
        limit: Catalog pool size if the rarity cache needs a refresh

    Raises:
        CatalogUnavailableError: If the rarity cache cannot be refreshed
        NoItemsAvailableError: If there is nothing to draw
        StorageError: If the purchase cannot be persisted
    """
    logger.info("Mystery Box - User %d initiating mystery box purchase", user_id)
    item, rarity = await allocator.allocate(limit)

    price = price_of(item)
    try:
        purchase = await create_purchase(session, user_id=user_id, item=item, price=price)
    except SQLAlchemyError as e:
        logger.exception("Mystery Box - Error during purchase for user %d", user_id)
        raise StorageError("Failed to complete mystery box purchase") from e

    logger.info(
        "Mystery Box - User %d got %s (%s rarity, value: %s) from mystery box (cost: %d)",
        user_id,
        item.name,
        rarity.value,
        price,
        MYSTERY_BOX_PRICE,
    )
    return purchase, rarity
