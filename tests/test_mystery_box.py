"""Tests for mystery box tier selection and drawing."""

import logging
import random
from collections import Counter

import pytest
from conftest import DEFAULT_CATALOG, FakeCatalog, FakeClock, make_item

from poketeams.models.failure import NoItemsAvailableError
from poketeams.models.rarity import RarityTier
from poketeams.services.mystery_box import MysteryBoxAllocator, draw, select_tier
from poketeams.services.rarity_cache import RarityCache, RarityCacheSnapshot


class TestSelectTier:
    @pytest.mark.parametrize(
        ("r", "expected"),
        [
            (0.0, RarityTier.COMMON),
            (0.5, RarityTier.COMMON),
            (0.5001, RarityTier.UNCOMMON),
            (0.75, RarityTier.UNCOMMON),
            (0.80, RarityTier.RARE),
            (0.85, RarityTier.RARE),
            (0.95, RarityTier.EPIC),
            (0.985, RarityTier.LEGENDARY),
            (0.999999, RarityTier.LEGENDARY),
        ],
    )
    def test_cumulative_thresholds(self, r: float, expected: RarityTier) -> None:
        """The first tier whose running sum reaches r wins."""
        assert select_tier(r) == expected

    def test_draw_above_total_falls_back_to_common(self) -> None:
        """A draw beyond the cumulative total selects common."""
        assert select_tier(1.5) == RarityTier.COMMON

    def test_distribution_roughly_matches_probabilities(self) -> None:
        """Over many draws each tier appears at about its configured rate."""
        rng = random.Random(42)
        counts = Counter(select_tier(rng.random()) for _ in range(20_000))

        assert counts[RarityTier.COMMON] / 20_000 == pytest.approx(0.50, abs=0.02)
        assert counts[RarityTier.UNCOMMON] / 20_000 == pytest.approx(0.25, abs=0.02)
        assert counts[RarityTier.LEGENDARY] / 20_000 == pytest.approx(0.02, abs=0.01)


class TestDraw:
    def _snapshot(self, items, fake_clock: FakeClock) -> RarityCacheSnapshot:
        return RarityCacheSnapshot.build(list(items), fake_clock())

    def test_draws_from_selected_bucket(self, fake_clock: FakeClock) -> None:
        """A legendary draw returns a legendary item when one exists."""
        snapshot = self._snapshot(DEFAULT_CATALOG, fake_clock)

        item, tier = draw(snapshot, 0.999, random.Random(0))

        assert tier == RarityTier.LEGENDARY
        assert item.name == "snorlax"

    def test_empty_bucket_falls_back_to_common(
        self, fake_clock: FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An empty selected bucket yields a common item and a warning."""
        snapshot = self._snapshot([make_item("rattata", weight=35)], fake_clock)

        with caplog.at_level(logging.WARNING, logger="poketeams.services.mystery_box"):
            item, tier = draw(snapshot, 0.99, random.Random(0))

        assert tier == RarityTier.COMMON
        assert item.name == "rattata"
        assert "selecting from common" in caplog.text

    def test_empty_common_fails(self, fake_clock: FakeClock) -> None:
        """Nothing in the selected tier or common raises NoItemsAvailableError."""
        snapshot = self._snapshot([make_item("snorlax", weight=4600)], fake_clock)

        with pytest.raises(NoItemsAvailableError):
            draw(snapshot, 0.1, random.Random(0))

    def test_empty_catalog_fails(self, fake_clock: FakeClock) -> None:
        """An empty catalog cannot produce an item."""
        snapshot = self._snapshot([], fake_clock)

        with pytest.raises(NoItemsAvailableError):
            draw(snapshot, 0.99, random.Random(0))

    def test_pick_is_uniform_within_bucket(self, fake_clock: FakeClock) -> None:
        """Every item of the bucket can be drawn."""
        items = [make_item(f"common-{i}", weight=10 + i) for i in range(4)]
        snapshot = self._snapshot(items, fake_clock)
        rng = random.Random(7)

        seen = {draw(snapshot, 0.1, rng)[0].name for _ in range(200)}

        assert seen == {item.name for item in items}


class TestAllocator:
    async def test_allocate_returns_item_and_tier(
        self, fake_catalog: FakeCatalog, fake_clock: FakeClock
    ) -> None:
        """Allocation draws from the cached snapshot."""
        allocator = MysteryBoxAllocator(
            RarityCache(fake_catalog, clock=fake_clock), rng=random.Random(3)
        )

        item, tier = await allocator.allocate()

        assert item.name in {i.name for i in DEFAULT_CATALOG}
        assert isinstance(tier, RarityTier)

    async def test_allocations_share_one_snapshot(
        self, fake_catalog: FakeCatalog, fake_clock: FakeClock
    ) -> None:
        """Repeated allocations reuse the cache."""
        allocator = MysteryBoxAllocator(RarityCache(fake_catalog, clock=fake_clock))

        for _ in range(10):
            await allocator.allocate()

        assert fake_catalog.fetch_calls == 1

    async def test_allocate_from_empty_catalog_fails(self, fake_clock: FakeClock) -> None:
        """An empty catalog surfaces NoItemsAvailableError."""
        allocator = MysteryBoxAllocator(RarityCache(FakeCatalog(), clock=fake_clock))

        with pytest.raises(NoItemsAvailableError):
            await allocator.allocate()
