"""
Fuzzy Crop Matcher

Scores catalog listings against an identified plant name.

Algorithm (per listing):
1. Normalize the identified name and the listing's plant name
2. nameScore: bigram Dice similarity (exact normalized match = 1.0)
3. scientificNameScore: same comparison against the listing's scientific name
4. aliasScore: alias table boost between identified name and plant name
5. Keep the listing if max(scores) >= threshold and assign its tier

The matcher does no I/O. Given the same alias table state, repeated calls
with the same arguments return the same result.
"""

import logging
from collections import OrderedDict
from typing import List, Optional, Sequence

from plantmatch.core.exceptions import InvalidInputError
from plantmatch.matching.alias_table import AliasTable
from plantmatch.matching.base import CatalogListing, ComponentScores, MatchCandidate
from plantmatch.matching.name_normalizer import NameNormalizer
from plantmatch.matching.similarity import compare_two_strings
from plantmatch.models.enums import MatchTier

logger = logging.getLogger(__name__)


class FuzzyMatcher:
    """
    Matches identified plants to seller listings.

    Usage:
        matcher = FuzzyMatcher(alias_table=AliasTable())
        matches = matcher.find_matches("Tomato", listings, threshold=0.5)
    """

    DEFAULT_THRESHOLD = 0.5

    def __init__(
        self,
        alias_table: Optional[AliasTable] = None,
        name_normalizer: Optional[NameNormalizer] = None,
    ):
        """
        Initialize matcher.

        Args:
            alias_table: Alias configuration; a default table if None
            name_normalizer: Name canonicalizer; the alias table's if None

        Raises:
            ValueError: name_normalizer differs from the alias table's
        """
        if alias_table is None:
            alias_table = AliasTable(name_normalizer=name_normalizer)
        elif name_normalizer is not None and name_normalizer is not alias_table.name_normalizer:
            raise ValueError(
                "name_normalizer must be the one the alias table was built with"
            )

        self.alias_table = alias_table
        # Name, scientific name and alias scores share one canonical form
        self.name_normalizer = alias_table.name_normalizer

    def find_matches(
        self,
        identified_name: Optional[str],
        listings: Sequence[CatalogListing],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> List[MatchCandidate]:
        """
        Find listings similar to an identified plant name.

        Args:
            identified_name: Plant name from identification
            listings: Catalog listings to score
            threshold: Minimum best score to keep a listing, in (0, 1]

        Returns:
            Matches sorted by descending similarity; ties keep listing order
        """
        self._check_threshold(threshold)

        normalized_target = self.name_normalizer.normalize(identified_name)
        if not normalized_target or not listings:
            return []

        matches = []
        for listing in listings:
            match = self._score_listing(identified_name, normalized_target, listing)
            if match is not None and match.similarity >= threshold:
                matches.append(match)

        # Stable sort keeps catalog order between equal scores
        matches = sorted(matches, key=lambda m: m.similarity, reverse=True)

        logger.debug(
            f"Matched '{identified_name}' against {len(listings)} listing(s): "
            f"{len(matches)} above {threshold:.2f}"
        )
        return matches

    def find_matches_for_names(
        self,
        names: Sequence[Optional[str]],
        listings: Sequence[CatalogListing],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> List[MatchCandidate]:
        """
        Match several names for the same plant (e.g. common and scientific).

        Each listing keeps its best-scoring match across the names. The
        output ordering follows find_matches.
        """
        self._check_threshold(threshold)

        targets = [
            (name, self.name_normalizer.normalize(name))
            for name in names
        ]
        targets = [(name, normalized) for name, normalized in targets if normalized]
        if not targets or not listings:
            return []

        matches = []
        for listing in listings:
            best: Optional[MatchCandidate] = None
            for name, normalized in targets:
                match = self._score_listing(name, normalized, listing)
                if match is not None and (best is None or match.similarity > best.similarity):
                    best = match
            if best is not None and best.similarity >= threshold:
                matches.append(best)

        return sorted(matches, key=lambda m: m.similarity, reverse=True)

    def calculate_similarity(self, name_a: Optional[str], name_b: Optional[str]) -> float:
        """Similarity of two plant names after normalization."""
        normalized_a = self.name_normalizer.normalize(name_a)
        normalized_b = self.name_normalizer.normalize(name_b)
        return self._similarity(normalized_a, normalized_b)

    def _score_listing(
        self,
        identified_name: Optional[str],
        normalized_target: str,
        listing: CatalogListing,
    ) -> Optional[MatchCandidate]:
        """Score one listing; None when it has no name to compare."""
        if not listing.plant_name and not listing.scientific_name:
            return None

        name_score = self._similarity(
            normalized_target, self.name_normalizer.normalize(listing.plant_name)
        )

        scientific_name_score = 0.0
        if listing.scientific_name:
            scientific_name_score = self._similarity(
                normalized_target, self.name_normalizer.normalize(listing.scientific_name)
            )

        alias_score = self.alias_table.score_alias(identified_name, listing.plant_name)

        scores = ComponentScores(
            name_score=name_score,
            scientific_name_score=scientific_name_score,
            alias_score=alias_score,
        )
        similarity = scores.best

        return MatchCandidate(
            listing=listing,
            similarity=similarity,
            tier=MatchTier.from_score(similarity),
            component_scores=scores,
        )

    @staticmethod
    def _similarity(normalized_a: str, normalized_b: str) -> float:
        # Names made only of stopwords or punctuation carry no signal
        if not normalized_a or not normalized_b:
            return 0.0
        if normalized_a == normalized_b:
            return 1.0
        return compare_two_strings(normalized_a, normalized_b)

    @staticmethod
    def _check_threshold(threshold: float) -> None:
        if not 0.0 < threshold <= 1.0:
            raise InvalidInputError(f"Match threshold must be within (0, 1], got {threshold}")


def partition_by_tier(
    matches: Sequence[MatchCandidate],
) -> "OrderedDict[MatchTier, List[MatchCandidate]]":
    """
    Group matches by tier, best tier first.

    Every recommendation tier is present (possibly empty); order inside a
    tier follows the input order.
    """
    tiers: "OrderedDict[MatchTier, List[MatchCandidate]]" = OrderedDict(
        (tier, []) for tier in MatchTier.ranked()
    )
    for match in matches:
        if match.tier in tiers:
            tiers[match.tier].append(match)
    return tiers
