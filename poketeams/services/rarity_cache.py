"""
Rarity-bucketed catalog cache.

Holds one immutable snapshot of the catalog, partitioned by rarity tier.
The snapshot is rebuilt wholesale when it is older than the TTL; there are
no partial updates.

Refreshes are single-flight: while one refresh is running, every other
caller awaits that same refresh and receives its snapshot or its error.
A failed refresh leaves the previous snapshot in place but does not serve
it to the callers of the failed refresh.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from poketeams.config import RARITY_CACHE_TTL, settings
from poketeams.models.catalog import CatalogItem
from poketeams.models.db import utcnow
from poketeams.models.failure import CatalogUnavailableError, KnownError
from poketeams.models.rarity import RarityTier, classify_weight
from poketeams.services.catalog_client import CatalogSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RarityCacheSnapshot:
    """
    Catalog items and their rarity buckets at one point in time.

    Every tier has a bucket (possibly empty) and every item is in exactly
    one bucket.
    """

    items: tuple[CatalogItem, ...]
    buckets: Mapping[RarityTier, tuple[CatalogItem, ...]]
    fetched_at: datetime

    @classmethod
    def build(cls, items: list[CatalogItem], fetched_at: datetime) -> "RarityCacheSnapshot":
        grouped: dict[RarityTier, list[CatalogItem]] = {tier: [] for tier in RarityTier}
        for item in items:
            grouped[classify_weight(item.weight)].append(item)

        return cls(
            items=tuple(items),
            buckets={tier: tuple(bucket) for tier, bucket in grouped.items()},
            fetched_at=fetched_at,
        )

    def bucket(self, tier: RarityTier) -> tuple[CatalogItem, ...]:
        return self.buckets.get(tier, ())

    def bucket_sizes(self) -> dict[str, int]:
        return {tier.value: len(self.bucket(tier)) for tier in RarityTier}


class RarityCache:
    """Time-boxed, single-flight cache of the classified catalog."""

    def __init__(
        self,
        catalog: CatalogSource,
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = RARITY_CACHE_TTL,
        default_limit: int | None = None,
    ) -> None:
        self._catalog = catalog
        self._clock = clock
        self._ttl = ttl
        self._default_limit = default_limit or settings.pokeapi_item_limit
        self._snapshot: RarityCacheSnapshot | None = None
        self._refresh_task: asyncio.Task[RarityCacheSnapshot] | None = None

    @property
    def snapshot(self) -> RarityCacheSnapshot | None:
        """The currently published snapshot, fresh or not."""
        return self._snapshot

    def is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self._clock() - self._snapshot.fetched_at < self._ttl

    def invalidate(self) -> None:
        """Drop the published snapshot; the next read refreshes."""
        self._snapshot = None

    async def get_classified_catalog(self, limit: int | None = None) -> RarityCacheSnapshot:
        """
        Return a fresh classified snapshot, refreshing it if needed.

        Args:
            limit: Catalog pool size for a refresh. Ignored when the held
                snapshot is still fresh.

        Raises:
            CatalogUnavailableError: If a needed refresh fails
        """
        snapshot = self._snapshot
        if snapshot is not None and self.is_fresh():
            age_minutes = int((self._clock() - snapshot.fetched_at).total_seconds() // 60)
            logger.info(
                "PokeAPI - Cache hit, returning %d cached pokemons (age: %d minutes)",
                len(snapshot.items),
                age_minutes,
            )
            return snapshot

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh(limit or self._default_limit))
            self._refresh_task.add_done_callback(self._clear_refresh_task)
        else:
            logger.debug("Rarity cache refresh already in flight, awaiting it")

        # Shield so a cancelled caller does not cancel the refresh for the others
        return await asyncio.shield(self._refresh_task)

    def _clear_refresh_task(self, task: asyncio.Task[RarityCacheSnapshot]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the outcome retrieved when every awaiting caller went away
        if not task.cancelled():
            task.exception()

    async def _refresh(self, limit: int) -> RarityCacheSnapshot:
        logger.info("PokeAPI - Cache miss, fetching %d pokemons from API", limit)
        try:
            items = await self._catalog.fetch_items(limit)
        except KnownError as e:
            logger.error("PokeAPI - Error fetching available pokemons: %s", e.message)
            if isinstance(e, CatalogUnavailableError):
                raise
            raise CatalogUnavailableError(
                "Failed to fetch available pokemons from PokeAPI", detail=e.message
            ) from e
        except Exception as e:
            logger.exception("PokeAPI - Unexpected error fetching available pokemons")
            raise CatalogUnavailableError(
                "Failed to fetch available pokemons from PokeAPI"
            ) from e

        snapshot = RarityCacheSnapshot.build(items, fetched_at=self._clock())
        self._snapshot = snapshot
        logger.info(
            "PokeAPI - Cache updated, categorized pokemons: %s",
            ", ".join(f"{tier}={count}" for tier, count in snapshot.bucket_sizes().items()),
        )
        return snapshot
