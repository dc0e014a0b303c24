"""
Enumerations for the identification and matching pipeline.

These enums provide type safety and clear documentation of valid values.
"""

from enum import Enum

from plantmatch.core.config import MATCH_TIER_THRESHOLDS


class MatchTier(str, Enum):
    """Confidence bucket for a listing's similarity score."""
    EXACT = "exact"      # >= 0.95
    STRONG = "strong"    # >= 0.80
    GOOD = "good"        # >= 0.60
    WEAK = "weak"        # >= 0.50
    POOR = "poor"        # < 0.50

    @classmethod
    def from_score(cls, score: float) -> "MatchTier":
        """Convert a similarity score to its tier."""
        for tier_name, boundary in MATCH_TIER_THRESHOLDS.items():
            if score >= boundary:
                return cls(tier_name)
        return cls.POOR

    @classmethod
    def ranked(cls) -> list["MatchTier"]:
        """Tiers that produce recommendations, best first."""
        return [cls.EXACT, cls.STRONG, cls.GOOD, cls.WEAK]


class ListingStatus(str, Enum):
    """Lifecycle status of a seller listing."""
    ACTIVE = "active"
    SOLD = "sold"
    INACTIVE = "inactive"


class AttemptOutcome(str, Enum):
    """Result of a single provider call inside the fallback loop."""
    SUCCESS = "success"
    LOW_CONFIDENCE = "low_confidence"
    ERROR = "error"
    TIMEOUT = "timeout"


class ProviderType(str, Enum):
    """Upstream identification services and their response shapes."""
    PLANT_ID = "plant_id"
    PLANTNET = "plantnet"
    CANONICAL = "canonical"
