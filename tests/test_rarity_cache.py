"""Tests for the rarity-bucketed catalog cache."""

import asyncio
from datetime import timedelta

import pytest
from conftest import DEFAULT_CATALOG, FakeCatalog, FakeClock, make_item

from poketeams.models.failure import CatalogUnavailableError, NotFoundError
from poketeams.models.rarity import RarityTier
from poketeams.services.rarity_cache import RarityCache, RarityCacheSnapshot


@pytest.fixture
def cache(fake_catalog: FakeCatalog, fake_clock: FakeClock) -> RarityCache:
    return RarityCache(fake_catalog, clock=fake_clock, default_limit=50)


class TestSnapshot:
    def test_buckets_partition_items(self, fake_clock: FakeClock) -> None:
        """Every item lands in exactly one bucket."""
        snapshot = RarityCacheSnapshot.build(list(DEFAULT_CATALOG), fake_clock())

        bucketed = [item for tier in RarityTier for item in snapshot.bucket(tier)]
        assert sorted(i.name for i in bucketed) == sorted(i.name for i in DEFAULT_CATALOG)

    def test_every_tier_has_a_bucket(self, fake_clock: FakeClock) -> None:
        """Empty tiers are present with an empty bucket."""
        snapshot = RarityCacheSnapshot.build([make_item("tiny", weight=5)], fake_clock())

        assert set(snapshot.buckets) == set(RarityTier)
        assert snapshot.bucket(RarityTier.LEGENDARY) == ()

    def test_bucket_placement_follows_weight(self, fake_clock: FakeClock) -> None:
        """Items are bucketed by their classified weight."""
        snapshot = RarityCacheSnapshot.build(list(DEFAULT_CATALOG), fake_clock())

        assert "snorlax" in [i.name for i in snapshot.bucket(RarityTier.LEGENDARY)]
        assert "magmar" in [i.name for i in snapshot.bucket(RarityTier.RARE)]
        assert "growlithe" in [i.name for i in snapshot.bucket(RarityTier.UNCOMMON)]


class TestFreshness:
    async def test_first_read_fetches(self, cache: RarityCache, fake_catalog: FakeCatalog) -> None:
        """An empty cache refreshes on first read."""
        snapshot = await cache.get_classified_catalog()

        assert fake_catalog.fetch_calls == 1
        assert len(snapshot.items) == len(DEFAULT_CATALOG)

    async def test_fresh_snapshot_is_reused(
        self, cache: RarityCache, fake_catalog: FakeCatalog, fake_clock: FakeClock
    ) -> None:
        """Reads within the TTL return the same snapshot without refetching."""
        first = await cache.get_classified_catalog()
        fake_clock.advance(timedelta(hours=23, minutes=59))
        second = await cache.get_classified_catalog()

        assert second is first
        assert fake_catalog.fetch_calls == 1

    async def test_expired_snapshot_is_rebuilt(
        self, cache: RarityCache, fake_catalog: FakeCatalog, fake_clock: FakeClock
    ) -> None:
        """A snapshot exactly TTL old is stale."""
        first = await cache.get_classified_catalog()
        fake_clock.advance(timedelta(hours=24))
        second = await cache.get_classified_catalog()

        assert second is not first
        assert second.fetched_at == fake_clock()
        assert fake_catalog.fetch_calls == 2

    async def test_limit_ignored_when_fresh(
        self, cache: RarityCache, fake_catalog: FakeCatalog
    ) -> None:
        """A fresh snapshot is served regardless of the requested pool size."""
        await cache.get_classified_catalog(limit=3)
        snapshot = await cache.get_classified_catalog(limit=100)

        assert len(snapshot.items) == 3
        assert fake_catalog.fetch_limits == [3]

    async def test_default_limit_used(self, cache: RarityCache, fake_catalog: FakeCatalog) -> None:
        """Without a limit the configured default is fetched."""
        await cache.get_classified_catalog()

        assert fake_catalog.fetch_limits == [50]

    async def test_invalidate_forces_refresh(
        self, cache: RarityCache, fake_catalog: FakeCatalog
    ) -> None:
        """Invalidating drops the snapshot."""
        await cache.get_classified_catalog()
        cache.invalidate()

        assert cache.snapshot is None
        await cache.get_classified_catalog()
        assert fake_catalog.fetch_calls == 2


class TestSingleFlight:
    async def test_concurrent_reads_share_one_refresh(self, fake_clock: FakeClock) -> None:
        """Callers arriving during a refresh await it instead of starting their own."""
        release = asyncio.Event()

        class SlowCatalog(FakeCatalog):
            async def fetch_items(self, limit: int):
                await release.wait()
                return await super().fetch_items(limit)

        catalog = SlowCatalog(DEFAULT_CATALOG)
        cache = RarityCache(catalog, clock=fake_clock)

        readers = [asyncio.create_task(cache.get_classified_catalog()) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        snapshots = await asyncio.gather(*readers)

        assert catalog.fetch_calls == 1
        assert all(s is snapshots[0] for s in snapshots)

    async def test_concurrent_reads_share_one_failure(self, fake_clock: FakeClock) -> None:
        """Every caller of a failed refresh receives the failure."""
        release = asyncio.Event()

        class FailingCatalog(FakeCatalog):
            async def fetch_items(self, limit: int):
                self.fetch_calls += 1
                await release.wait()
                raise CatalogUnavailableError(detail="boom")

        catalog = FailingCatalog()
        cache = RarityCache(catalog, clock=fake_clock)

        readers = [asyncio.create_task(cache.get_classified_catalog()) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*readers, return_exceptions=True)

        assert catalog.fetch_calls == 1
        assert all(isinstance(r, CatalogUnavailableError) for r in results)

    async def test_cancelled_reader_does_not_cancel_refresh(self, fake_clock: FakeClock) -> None:
        """A caller that goes away leaves the refresh running for the others."""
        release = asyncio.Event()

        class SlowCatalog(FakeCatalog):
            async def fetch_items(self, limit: int):
                await release.wait()
                return await super().fetch_items(limit)

        cache = RarityCache(SlowCatalog(DEFAULT_CATALOG), clock=fake_clock)

        doomed = asyncio.create_task(cache.get_classified_catalog())
        survivor = asyncio.create_task(cache.get_classified_catalog())
        await asyncio.sleep(0)
        doomed.cancel()
        release.set()

        snapshot = await survivor
        assert len(snapshot.items) == len(DEFAULT_CATALOG)
        with pytest.raises(asyncio.CancelledError):
            await doomed


class TestRefreshFailure:
    async def test_failure_surfaces_as_catalog_unavailable(
        self, cache: RarityCache, fake_catalog: FakeCatalog
    ) -> None:
        """Any catalog error becomes CatalogUnavailableError."""
        fake_catalog.fail_with = RuntimeError("socket closed")

        with pytest.raises(CatalogUnavailableError):
            await cache.get_classified_catalog()

    async def test_not_found_during_refresh_is_unavailable(
        self, cache: RarityCache, fake_catalog: FakeCatalog
    ) -> None:
        """Other classified failures are also reported as unavailable."""
        fake_catalog.fail_with = NotFoundError("gone")

        with pytest.raises(CatalogUnavailableError):
            await cache.get_classified_catalog()

    async def test_failed_refresh_keeps_old_snapshot_but_errors(
        self, cache: RarityCache, fake_catalog: FakeCatalog, fake_clock: FakeClock
    ) -> None:
        """A stale snapshot survives a failed refresh but is not served for it."""
        original = await cache.get_classified_catalog()
        fake_clock.advance(timedelta(days=2))
        fake_catalog.fail_with = CatalogUnavailableError()

        with pytest.raises(CatalogUnavailableError):
            await cache.get_classified_catalog()

        assert cache.snapshot is original

    async def test_recovers_after_failure(
        self, cache: RarityCache, fake_catalog: FakeCatalog
    ) -> None:
        """The next read after a failure tries again."""
        fake_catalog.fail_with = CatalogUnavailableError()
        with pytest.raises(CatalogUnavailableError):
            await cache.get_classified_catalog()

        fake_catalog.fail_with = None
        snapshot = await cache.get_classified_catalog()

        assert len(snapshot.items) == len(DEFAULT_CATALOG)
        assert cache.is_fresh()
