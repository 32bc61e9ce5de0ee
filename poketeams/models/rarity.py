"""
Rarity tiers for mystery box allocation.

Tiers are a closed, ordered set. Each tier has a fixed draw probability
and an inclusive upper weight bound; a tier's lower bound is the previous
tier's upper bound (exclusive), so valid weights never fall into a gap.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class RarityTier(str, Enum):
    """Mystery box rarity tier, in draw order."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass(frozen=True, slots=True)
class TierRule:
    """Probability and weight band for one tier."""

    tier: RarityTier
    probability: float
    max_weight: float


# Order matters: iteration order is the cumulative draw order
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(RarityTier.COMMON, 0.50, 100),
    TierRule(RarityTier.UNCOMMON, 0.25, 300),
    TierRule(RarityTier.RARE, 0.15, 600),
    TierRule(RarityTier.EPIC, 0.08, 1000),
    TierRule(RarityTier.LEGENDARY, 0.02, 10000),
)

RARITY_PROBABILITIES: dict[RarityTier, float] = {
    rule.tier: rule.probability for rule in TIER_RULES
}


def classify_weight(weight: float) -> RarityTier:
    """
    Classify a catalog weight into a rarity tier.

    Args:
        weight: Weight in hectograms

    Returns:
        The tier whose band contains the weight. Non-positive, non-finite
        and out-of-range weights classify as COMMON.
    """
    if not isinstance(weight, (int, float)) or not math.isfinite(weight) or weight <= 0:
        logger.warning("Invalid pokemon weight %r, defaulting to common rarity", weight)
        return RarityTier.COMMON

    for rule in TIER_RULES:
        if weight <= rule.max_weight:
            return rule.tier

    logger.warning(
        "Pokemon weight %s outside defined ranges, defaulting to common rarity", weight
    )
    return RarityTier.COMMON
