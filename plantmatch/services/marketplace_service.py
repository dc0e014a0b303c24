"""
Marketplace Matching Orchestration Service

Coordinates the buyer flow from a plant photo to marketplace listings:
1. Identification with provider fallback
2. Fuzzy matching of the identified name against available listings
3. Tier partitioning
4. Recommendations

Identification failures never raise: an unidentified plant produces an
empty match list and the "none" recommendation, so the caller can offer
manual entry instead.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from plantmatch.core.config import UNKNOWN_SPECIES, get_settings
from plantmatch.core.exceptions import InvalidInputError
from plantmatch.identification.base import IdentificationResult
from plantmatch.identification.fallback import FallbackSelector
from plantmatch.identification.providers import build_providers
from plantmatch.matching.alias_table import AliasTable
from plantmatch.matching.base import CatalogListing, MatchCandidate
from plantmatch.matching.fuzzy_matcher import FuzzyMatcher, partition_by_tier
from plantmatch.models.enums import MatchTier
from plantmatch.services.recommendation_service import Recommendation, RecommendationBuilder

logger = logging.getLogger(__name__)


@dataclass
class MatchReport:
    """Result of matching one identified plant against the catalog."""
    identified_name: Optional[str]
    scientific_name: Optional[str] = None
    identification: Optional[IdentificationResult] = None
    matches: List[MatchCandidate] = field(default_factory=list)
    tiers: "OrderedDict[MatchTier, List[MatchCandidate]]" = field(default_factory=OrderedDict)
    recommendations: List[Recommendation] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def total_matches(self) -> int:
        return len(self.matches)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "identifiedName": self.identified_name,
            "scientificName": self.scientific_name,
            "identification": (
                self.identification.to_dict() if self.identification is not None else None
            ),
            "totalMatches": self.total_matches,
            "matches": [m.to_dict() for m in self.matches],
            "tiers": {
                tier.value: [m.to_dict() for m in tier_matches]
                for tier, tier_matches in self.tiers.items()
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
            "processingTimeMs": round(self.processing_time_ms, 2),
        }


class MarketplaceMatchingService:
    """
    Main orchestration service for plant-to-listing matching.

    Usage:
        service = MarketplaceMatchingService(selector=FallbackSelector(providers))
        report = await service.identify_and_match(image_bytes, listings)

    Pipeline Flow:
    ```
    Image bytes
         |
    ┌────▼─────┐
    │ Fallback │ → Plant.id, then PlantNet if needed
    │ Selector │
    └────┬─────┘
         |
    ┌────▼─────┐
    │  Fuzzy   │ → name, scientific name and alias scores
    │ Matcher  │
    └────┬─────┘
         |
    ┌────▼─────┐
    │Recommend │ → one entry per non-empty tier
    └────┬─────┘
         |
    MatchReport
    ```
    """

    def __init__(
        self,
        selector: Optional[FallbackSelector] = None,
        matcher: Optional[FuzzyMatcher] = None,
        builder: Optional[RecommendationBuilder] = None,
        default_threshold: float = FuzzyMatcher.DEFAULT_THRESHOLD,
    ):
        """
        Initialize the service with its components.

        Components can be injected for testing or replaced with
        alternative implementations.
        """
        self.selector = selector or FallbackSelector([])
        self.matcher = matcher or FuzzyMatcher()
        self.builder = builder or RecommendationBuilder()
        self.default_threshold = default_threshold

    @property
    def alias_table(self) -> AliasTable:
        return self.matcher.alias_table

    async def identify(self, image: bytes) -> IdentificationResult:
        """
        Identify the plant in an image.

        Raises:
            InvalidInputError: empty image or no providers configured
        """
        return await self.selector.select(image)

    def match(
        self,
        identified_name: Optional[str],
        listings: Optional[Sequence[CatalogListing]],
        threshold: Optional[float] = None,
        scientific_name: Optional[str] = None,
    ) -> MatchReport:
        """
        Match an identified plant against catalog listings.

        Only available listings (active, quantity > 0) are considered.
        When a scientific name is given, each listing keeps its best score
        across both names.

        Args:
            identified_name: Common (or scientific) name of the plant
            listings: Catalog listings; an empty list is valid
            threshold: Minimum similarity, defaults to the service threshold
            scientific_name: Optional scientific name of the plant

        Returns:
            MatchReport with matches, tiers and recommendations

        Raises:
            InvalidInputError: listings missing or threshold out of range
        """
        start_time = time.perf_counter()

        if listings is None:
            raise InvalidInputError("A catalog listing sequence is required")
        if threshold is None:
            threshold = self.default_threshold

        available = [listing for listing in listings if listing.is_available]
        if len(available) < len(listings):
            logger.debug(f"Skipped {len(listings) - len(available)} unavailable listing(s)")

        names = [identified_name]
        if scientific_name and scientific_name != UNKNOWN_SPECIES:
            names.append(scientific_name)

        matches = self.matcher.find_matches_for_names(names, available, threshold)
        tiers = partition_by_tier(matches)
        recommendations = self.builder.build(tiers)

        processing_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Matched '{identified_name}' against {len(available)} listing(s): "
            f"{len(matches)} match(es) "
            f"({len(tiers[MatchTier.EXACT])} exact, {len(tiers[MatchTier.STRONG])} strong)"
        )

        return MatchReport(
            identified_name=identified_name,
            scientific_name=scientific_name,
            matches=matches,
            tiers=tiers,
            recommendations=recommendations,
            processing_time_ms=processing_time_ms,
        )

    async def identify_and_match(
        self,
        image: bytes,
        listings: Optional[Sequence[CatalogListing]],
        threshold: Optional[float] = None,
    ) -> MatchReport:
        """
        Identify a plant photo and match it against the catalog.

        Uses the top candidate's primary common name (scientific name if it
        has none) together with its scientific name. When identification
        yields no candidate the report has no matches and carries the
        "none" recommendation along with the identification error.
        """
        start_time = time.perf_counter()

        if listings is None:
            raise InvalidInputError("A catalog listing sequence is required")

        identification = await self.identify(image)
        top = identification.top_candidate

        if top is None:
            logger.warning(
                f"No identification candidate from {identification.source_service}: "
                f"{identification.error or 'empty result'}"
            )
            tiers = partition_by_tier([])
            return MatchReport(
                identified_name=None,
                identification=identification,
                tiers=tiers,
                recommendations=self.builder.build(tiers),
                processing_time_ms=(time.perf_counter() - start_time) * 1000,
            )

        report = self.match(
            top.display_name,
            listings,
            threshold=threshold,
            scientific_name=top.scientific_name,
        )
        report.identification = identification
        report.processing_time_ms = (time.perf_counter() - start_time) * 1000
        return report

    def get_status(self) -> Dict[str, Any]:
        """Component status for readiness checks."""
        return {
            "providers": self.selector.get_provider_info(),
            "alias_entries": len(self.alias_table),
            "min_provider_confidence": self.selector.min_confidence,
            "match_threshold": self.default_threshold,
        }


def create_marketplace_service(settings=None) -> MarketplaceMatchingService:
    """Build a service from application settings."""
    settings = settings or get_settings()

    if settings.alias_table_path:
        alias_table = AliasTable.from_file(settings.alias_table_path)
    else:
        alias_table = AliasTable()

    selector = FallbackSelector(
        build_providers(settings),
        min_confidence=settings.min_provider_confidence,
    )

    return MarketplaceMatchingService(
        selector=selector,
        matcher=FuzzyMatcher(alias_table=alias_table),
        default_threshold=settings.match_threshold,
    )


# Singleton instance for dependency injection
_marketplace_service: Optional[MarketplaceMatchingService] = None


def get_marketplace_service() -> MarketplaceMatchingService:
    """Get or create the marketplace service singleton."""
    global _marketplace_service
    if _marketplace_service is None:
        _marketplace_service = create_marketplace_service()
    return _marketplace_service
