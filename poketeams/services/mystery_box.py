"""
Mystery box allocator.

Draws a rarity tier with fixed probabilities, then a Pokémon uniformly from
that tier's bucket. An empty bucket falls back to COMMON; if COMMON is also
empty the draw fails with NoItemsAvailableError.
"""

import logging
import random

from poketeams.models.catalog import CatalogItem
from poketeams.models.failure import NoItemsAvailableError
from poketeams.models.rarity import TIER_RULES, RarityTier
from poketeams.services.rarity_cache import RarityCache, RarityCacheSnapshot

logger = logging.getLogger(__name__)


def select_tier(r: float) -> RarityTier:
    """
    Map a uniform draw in [0, 1) to a tier.

    Returns the first tier whose cumulative probability reaches `r`.
    If floating-point error leaves `r` above the final cumulative sum,
    returns COMMON.
    """
    cumulative = 0.0
    for rule in TIER_RULES:
        cumulative += rule.probability
        if r <= cumulative:
            return rule.tier
    return RarityTier.COMMON


def _pick(bucket: tuple[CatalogItem, ...], rng: random.Random) -> CatalogItem:
    return bucket[rng.randrange(len(bucket))]


def draw(
    snapshot: RarityCacheSnapshot, r: float, rng: random.Random
) -> tuple[CatalogItem, RarityTier]:
    """
    Pick one Pokémon from a snapshot for the draw `r`.

    Raises:
        NoItemsAvailableError: If both the selected and COMMON buckets are empty
    """
    tier = select_tier(r)
    bucket = snapshot.bucket(tier)

    if not bucket and tier is not RarityTier.COMMON:
        logger.warning("No pokemons available for rarity %s, selecting from common", tier.value)
        tier = RarityTier.COMMON
        bucket = snapshot.bucket(tier)

    if not bucket:
        raise NoItemsAvailableError()

    item = _pick(bucket, rng)
    logger.info(
        "Mystery Box - Selected %s with %s rarity (weight: %s)", item.name, tier.value, item.weight
    )
    return item, tier


class MysteryBoxAllocator:
    """Weighted-random Pokémon allocation over the rarity cache."""

    def __init__(self, cache: RarityCache, rng: random.Random | None = None) -> None:
        self._cache = cache
        self._rng = rng or random.Random()

    async def allocate(self, limit: int | None = None) -> tuple[CatalogItem, RarityTier]:
        """
        Draw one Pokémon and the tier it was drawn from.

        Args:
            limit: Catalog pool size used if the cache needs a refresh

        Raises:
            CatalogUnavailableError: If the cache cannot be refreshed
            NoItemsAvailableError: If the catalog has nothing to draw
        """
        snapshot = await self._cache.get_classified_catalog(limit)
        return draw(snapshot, self._rng.random(), self._rng)
