"""
Tests for RecommendationBuilder - tiered matches to recommendations.
"""

from collections import OrderedDict
from decimal import Decimal

import pytest

from plantmatch.matching.base import CatalogListing, ComponentScores, MatchCandidate, match_message
from plantmatch.matching.fuzzy_matcher import partition_by_tier
from plantmatch.models.enums import MatchTier
from plantmatch.services.recommendation_service import RecommendationBuilder


def make_match(listing_id: str, similarity: float) -> MatchCandidate:
    listing = CatalogListing(
        id=listing_id,
        seller_id="seller",
        plant_name=f"Crop {listing_id}",
        quantity=1,
        price=Decimal("5"),
    )
    return MatchCandidate(
        listing=listing,
        similarity=similarity,
        tier=MatchTier.from_score(similarity),
        component_scores=ComponentScores(name_score=similarity),
    )


@pytest.fixture
def builder():
    return RecommendationBuilder()


class TestRecommendationBuilder:
    """Test suite for RecommendationBuilder."""

    def test_one_recommendation_per_non_empty_tier(self, builder):
        """Test tier order and counts."""
        matches = [
            make_match("e1", 1.0),
            make_match("s1", 0.9),
            make_match("g1", 0.7),
            make_match("w1", 0.55),
        ]

        recommendations = builder.build_from_matches(matches)

        assert [r.tier for r in recommendations] == ["exact", "strong", "good", "weak"]
        assert all(r.match_count == 1 for r in recommendations)

    def test_empty_tiers_are_skipped(self, builder):
        """Test that tiers without matches produce nothing."""
        recommendations = builder.build_from_matches([make_match("s1", 0.85), make_match("w1", 0.5)])

        assert [r.tier for r in recommendations] == ["strong", "weak"]

    def test_sample_sizes(self, builder):
        """Test bounded samples: 3 for exact/strong, 2 for good/weak."""
        matches = (
            [make_match(f"e{i}", 1.0) for i in range(5)]
            + [make_match(f"s{i}", 0.9) for i in range(4)]
            + [make_match(f"g{i}", 0.7) for i in range(3)]
            + [make_match(f"w{i}", 0.5) for i in range(3)]
        )

        by_tier = {r.tier: r for r in builder.build_from_matches(matches)}

        assert [l.id for l in by_tier["exact"].listings] == ["e0", "e1", "e2"]
        assert len(by_tier["strong"].listings) == 3
        assert len(by_tier["good"].listings) == 2
        assert len(by_tier["weak"].listings) == 2
        assert by_tier["exact"].match_count == 5
        assert by_tier["weak"].match_count == 3

    def test_message_includes_count(self, builder):
        """Test that messages state the tier's match count."""
        matches = [make_match(f"e{i}", 1.0) for i in range(4)]

        recommendation = builder.build_from_matches(matches)[0]

        assert "4 exact match(es)" in recommendation.message

    def test_action_hints(self, builder):
        """Test confident hints for exact/strong and cautious ones for good/weak."""
        matches = [
            make_match("e1", 1.0),
            make_match("s1", 0.9),
            make_match("g1", 0.7),
            make_match("w1", 0.55),
        ]

        hints = {r.tier: r.action_hint.lower() for r in builder.build_from_matches(matches)}

        assert "proceed with confidence" in hints["exact"]
        assert "proceed with confidence" in hints["strong"]
        assert "verify before purchasing" in hints["good"]
        assert "verify before purchasing" in hints["weak"]

    def test_no_matches(self, builder):
        """Test the single "none" recommendation."""
        recommendations = builder.build_from_matches([])

        assert len(recommendations) == 1
        none = recommendations[0]
        assert none.tier == "none"
        assert none.listings == []
        assert none.match_count == 0
        assert "retak" in none.action_hint.lower()

    def test_none_never_combined_with_tiers(self, builder):
        """Test that "none" only appears when every tier is empty."""
        recommendations = builder.build_from_matches([make_match("w1", 0.5)])
        assert "none" not in [r.tier for r in recommendations]

    def test_build_accepts_partial_mapping(self, builder):
        """Test a tier mapping that lacks some tiers."""
        tiers = OrderedDict([(MatchTier.GOOD, [make_match("g1", 0.7)])])

        recommendations = builder.build(tiers)

        assert [r.tier for r in recommendations] == ["good"]

    def test_poor_tier_ignored(self, builder):
        """Test that poor matches never produce a recommendation."""
        tiers = {MatchTier.POOR: [make_match("p1", 0.2)]}

        recommendations = builder.build(tiers)

        assert [r.tier for r in recommendations] == ["none"]

    def test_build_matches_partition(self, builder):
        """Test that build and build_from_matches agree."""
        matches = [make_match("e1", 1.0), make_match("g1", 0.65)]
        assert builder.build(partition_by_tier(matches)) == builder.build_from_matches(matches)

    def test_custom_sample_sizes(self):
        """Test overriding sample sizes."""
        builder = RecommendationBuilder(sample_sizes={"exact": 1})
        matches = [make_match("e1", 1.0), make_match("e2", 1.0)]

        recommendation = builder.build_from_matches(matches)[0]

        assert len(recommendation.listings) == 1
        assert recommendation.match_count == 2

    def test_to_dict(self, builder):
        """Test serialized field names."""
        data = builder.build_from_matches([make_match("e1", 1.0)])[0].to_dict()

        assert data["tier"] == "exact"
        assert data["matchCount"] == 1
        assert "actionHint" in data
        assert data["listings"][0]["id"] == "e1"

    @pytest.mark.parametrize("tier,similarity,expected", [
        (MatchTier.EXACT, 1.0, "Perfect match found (100% confidence)"),
        (MatchTier.STRONG, 0.9, "Strong match found (90% confidence)"),
        (MatchTier.GOOD, 0.7, "Good match found (70% confidence) - Please confirm"),
        (MatchTier.WEAK, 0.55, "Possible match found (55% confidence) - Please verify"),
        (MatchTier.POOR, 0.3, "Low confidence match (30%) - Consider retrying"),
    ])
    def test_match_message(self, tier, similarity, expected):
        """Test per-match message templates."""
        assert match_message(tier, similarity) == expected
        assert make_match("x", similarity).message == expected
