"""
Base interfaces and data structures for plant identification.

Provides:
- IdentificationCandidate: One species guess with a uniform confidence
- IdentificationResult: Canonical answer handed to downstream consumers
- ProviderAttempt: Audit record for one provider call
- IdentificationProvider: Abstract base for upstream identification services
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, Mapping

from plantmatch.models.enums import AttemptOutcome, ProviderType


@dataclass(frozen=True)
class IdentificationCandidate:
    """
    Single species candidate produced by the result normalizer.

    Immutable once created. Candidates inside a result are ordered by
    descending confidence and `rank` is the 1-based position in that order.
    """
    scientific_name: str
    common_names: Tuple[str, ...]
    family: str
    genus: str
    confidence: float  # 0.0 - 1.0
    rank: int

    @property
    def primary_common_name(self) -> Optional[str]:
        """First common name reported by the provider."""
        return self.common_names[0] if self.common_names else None

    @property
    def display_name(self) -> str:
        """Name used for catalog matching: common name if known."""
        return self.primary_common_name or self.scientific_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scientificName": self.scientific_name,
            "commonNames": list(self.common_names),
            "family": self.family,
            "genus": self.genus,
            "confidence": round(self.confidence, 4),
            "rank": self.rank,
        }


@dataclass
class ProviderAttempt:
    """Outcome of calling one provider during fallback selection."""
    provider: str
    outcome: AttemptOutcome
    top_confidence: float = 0.0
    error: Optional[str] = None
    elapsed_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "outcome": self.outcome.value,
            "topConfidence": round(self.top_confidence, 4),
            "error": self.error,
            "elapsedMs": round(self.elapsed_ms, 1),
        }


@dataclass
class IdentificationResult:
    """
    Canonical identification result.

    `fallback_used` is true iff `source_service` is not the first provider
    that was configured. `error` is only set when no usable answer exists.
    """
    candidates: List[IdentificationCandidate] = field(default_factory=list)
    source_service: str = ""
    fallback_used: bool = False
    timestamp: float = field(default_factory=time.time)
    error: Optional[str] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def top_candidate(self) -> Optional[IdentificationCandidate]:
        return self.candidates[0] if self.candidates else None

    @property
    def top_confidence(self) -> float:
        return self.candidates[0].confidence if self.candidates else 0.0

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "sourceService": self.source_service,
            "fallbackUsed": self.fallback_used,
            "timestamp": self.timestamp,
            "error": self.error,
            "attempts": [a.to_dict() for a in self.attempts],
        }


class IdentificationProvider(ABC):
    """
    Abstract base class for upstream identification services.

    Providers only fetch raw responses. Turning a response into an
    IdentificationResult is the normalizer's job, so `identify` returns the
    decoded JSON body and raises ProviderError on any failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier recorded as the result's source service."""
        pass

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Response shape produced by this provider."""
        pass

    @property
    def timeout(self) -> Optional[float]:
        """
        Per-call timeout in seconds.

        None means the selector's default timeout applies.
        """
        return None

    @property
    def is_configured(self) -> bool:
        """Check if the provider has the credentials it needs."""
        return True

    @abstractmethod
    async def identify(self, image: bytes) -> Mapping[str, Any]:
        """
        Identify the plant in an image.

        Args:
            image: Raw image bytes (JPEG or PNG)

        Returns:
            Raw provider response body
        """
        pass

    def get_provider_info(self) -> Dict[str, Any]:
        """Get provider metadata for API responses."""
        return {
            "name": self.name,
            "type": self.provider_type.value,
            "timeout": self.timeout,
            "is_configured": self.is_configured,
        }
