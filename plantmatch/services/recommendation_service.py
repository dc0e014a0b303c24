"""
Recommendation Service

Turns tiered crop matches into buyer-facing recommendations.

Rules:
- One recommendation per non-empty tier, best tier first
  (exact, strong, good, weak)
- Each carries the tier's match count, a message, an action hint and a
  bounded sample of listings (3 for exact/strong, 2 for good/weak)
- A single "none" recommendation only when no tier has matches
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from plantmatch.core.config import RECOMMENDATION_SAMPLE_SIZES
from plantmatch.matching.base import CatalogListing, MatchCandidate
from plantmatch.matching.fuzzy_matcher import partition_by_tier
from plantmatch.models.enums import MatchTier

logger = logging.getLogger(__name__)

NO_MATCH_TIER = "none"


@dataclass
class Recommendation:
    """Actionable summary for one match tier."""
    tier: str
    message: str
    action_hint: str
    listings: List[CatalogListing] = field(default_factory=list)
    match_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "message": self.message,
            "actionHint": self.action_hint,
            "listings": [listing.to_dict() for listing in self.listings],
            "matchCount": self.match_count,
        }


class RecommendationBuilder:
    """
    Builds recommendations from matches partitioned by tier.

    Usage:
        builder = RecommendationBuilder()
        recommendations = builder.build(partition_by_tier(matches))
    """

    MESSAGES: Dict[MatchTier, str] = {
        MatchTier.EXACT: "Found {count} exact match(es)! These crops match your plant perfectly.",
        MatchTier.STRONG: "Found {count} strong match(es). These are very likely the same plant.",
        MatchTier.GOOD: "Found {count} good match(es). These might be related varieties.",
        MatchTier.WEAK: "Found {count} possible match(es) with low confidence.",
    }

    ACTION_HINTS: Dict[MatchTier, str] = {
        MatchTier.EXACT: "You can proceed with confidence to purchase these crops.",
        MatchTier.STRONG: "These have high similarity scores; you can proceed with confidence after a quick review.",
        MatchTier.GOOD: "Consider these options but verify before purchasing.",
        MatchTier.WEAK: "These matches are uncertain. Verify before purchasing, or upload a clearer image.",
    }

    NO_MATCH_MESSAGE = "No matching crops found in the marketplace."
    NO_MATCH_ACTION = (
        "Try retaking the photo with better lighting and a clearer view of the plant, "
        "or check back later as new crops are added regularly."
    )

    def __init__(self, sample_sizes: Mapping[str, int] = RECOMMENDATION_SAMPLE_SIZES):
        self.sample_sizes = dict(sample_sizes)

    def build(
        self,
        tiers: Mapping[MatchTier, Sequence[MatchCandidate]],
    ) -> List[Recommendation]:
        """
        Build recommendations in tier priority order.

        Args:
            tiers: Tier -> matches (best first inside each tier). Tiers
                outside exact/strong/good/weak are ignored.

        Returns:
            Recommendations for non-empty tiers, or a single "none"
            recommendation when every tier is empty
        """
        recommendations = []

        for tier in MatchTier.ranked():
            matches = tiers.get(tier) or []
            if not matches:
                continue

            sample_size = self.sample_sizes.get(tier.value, 0)
            recommendations.append(Recommendation(
                tier=tier.value,
                message=self.MESSAGES[tier].format(count=len(matches)),
                action_hint=self.ACTION_HINTS[tier],
                listings=[match.listing for match in matches[:sample_size]],
                match_count=len(matches),
            ))

        if not recommendations:
            recommendations.append(self._no_match())

        logger.debug(
            f"Built {len(recommendations)} recommendation(s): "
            f"{', '.join(r.tier for r in recommendations)}"
        )
        return recommendations

    def build_from_matches(self, matches: Sequence[MatchCandidate]) -> List[Recommendation]:
        """Partition a flat, sorted match list and build recommendations."""
        return self.build(partition_by_tier(matches))

    def _no_match(self) -> Recommendation:
        return Recommendation(
            tier=NO_MATCH_TIER,
            message=self.NO_MATCH_MESSAGE,
            action_hint=self.NO_MATCH_ACTION,
            listings=[],
            match_count=0,
        )
