import math
from decimal import Decimal

from poketeams.config import (
    BASE_PRICE,
    MINIMUM_PRICE,
    TYPE_BONUS_MULTIPLIER,
    WEIGHT_HEIGHT_DIVISOR,
)
from poketeams.models.catalog import CatalogItem


def _size_factor(value: float) -> int:
    # Non-finite sizes contribute nothing
    if not math.isfinite(value):
        return 0
    return int(value // WEIGHT_HEIGHT_DIVISOR)


def price_of(item: CatalogItem) -> Decimal:
    """
    Price a Pokémon from its size and type count.

    base + floor(weight / divisor) + floor(height / divisor) + types * bonus,
    never below the minimum price.
    """
    types_bonus = len(item.types) * TYPE_BONUS_MULTIPLIER
    price = BASE_PRICE + _size_factor(item.weight) + _size_factor(item.height) + types_bonus
    return Decimal(max(price, MINIMUM_PRICE)).quantize(Decimal("0.01"))
