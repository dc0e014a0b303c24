"""
Data structures for catalog matching.

Provides:
- CatalogListing: Seller listing as read from the catalog (never mutated)
- ComponentScores: Per-signal scores behind a match
- MatchCandidate: A listing that passed the similarity threshold
- match_message: Per-match text for a tier and score
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any

from plantmatch.models.enums import ListingStatus, MatchTier


def match_message(tier: MatchTier, similarity: float) -> str:
    """Per-match text, e.g. "Strong match found (90% confidence)"."""
    percentage = round(similarity * 100)
    if tier == MatchTier.EXACT:
        return f"Perfect match found ({percentage}% confidence)"
    if tier == MatchTier.STRONG:
        return f"Strong match found ({percentage}% confidence)"
    if tier == MatchTier.GOOD:
        return f"Good match found ({percentage}% confidence) - Please confirm"
    if tier == MatchTier.WEAK:
        return f"Possible match found ({percentage}% confidence) - Please verify"
    return f"Low confidence match ({percentage}%) - Consider retrying"


@dataclass(frozen=True)
class CatalogListing:
    """
    Active seller listing.

    Owned by the catalog; the matching pipeline only reads it.
    """
    id: str
    seller_id: str
    plant_name: Optional[str]
    scientific_name: Optional[str] = None
    quantity: int = 0
    price: Decimal = Decimal("0")
    status: ListingStatus = ListingStatus.ACTIVE

    @property
    def is_available(self) -> bool:
        """Listing can currently be bought."""
        return self.status == ListingStatus.ACTIVE and self.quantity > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sellerId": self.seller_id,
            "plantName": self.plant_name,
            "scientificName": self.scientific_name,
            "quantity": self.quantity,
            "price": str(self.price),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class ComponentScores:
    """Scores from each matching signal."""
    name_score: float = 0.0
    scientific_name_score: float = 0.0
    alias_score: float = 0.0

    @property
    def best(self) -> float:
        return max(self.name_score, self.scientific_name_score, self.alias_score)

    def to_dict(self) -> Dict[str, float]:
        return {
            "nameScore": round(self.name_score, 4),
            "scientificNameScore": round(self.scientific_name_score, 4),
            "aliasScore": round(self.alias_score, 4),
        }


@dataclass(frozen=True)
class MatchCandidate:
    """
    Listing matched against an identified plant.

    Derived per request and never persisted.
    """
    listing: CatalogListing
    similarity: float
    tier: MatchTier
    component_scores: ComponentScores

    @property
    def message(self) -> str:
        """Human-readable summary of this match."""
        return match_message(self.tier, self.similarity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listing": self.listing.to_dict(),
            "similarity": round(self.similarity, 4),
            "tier": self.tier.value,
            "componentScores": self.component_scores.to_dict(),
            "message": self.message,
        }
