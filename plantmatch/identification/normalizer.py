"""
Result Normalizer

Converts raw identification responses from different providers into a
canonical IdentificationResult.

Supported shapes:
- Pl@ntNet v2:   {"results": [{"score", "species": {...}}]}
- Plant.id v3:   {"result": {"classification": {"suggestions": [...]}}}
- Plant.id v2:   {"suggestions": [{"plant_name", "probability", "plant_details"}]}
- Canonical:     {"candidates": [{"scientificName", "commonNames", ...}]}

Provider payloads are only partially reliable, so every field lookup
degrades to a sentinel instead of failing.
"""

import logging
import math
from typing import Optional, Dict, Any, List, Mapping

from plantmatch.core.config import UNKNOWN_SPECIES, UNKNOWN_FAMILY, UNKNOWN_GENUS
from plantmatch.identification.base import IdentificationCandidate, IdentificationResult
from plantmatch.models.enums import ProviderType

logger = logging.getLogger(__name__)


class ResultNormalizer:
    """
    Normalizes raw provider responses.

    The transform is pure: the same payload always produces the same
    candidates. Only the result timestamp differs between calls.
    """

    # Language priority when common names come grouped by language
    LANGUAGE_PRIORITY = ["en", "es", "fr", "de", "it"]

    def normalize(
        self,
        raw: Any,
        source_service: str,
        provider_type: Optional[ProviderType] = None,
        fallback_used: bool = False,
    ) -> IdentificationResult:
        """
        Normalize a raw response.

        Args:
            raw: Decoded provider response
            source_service: Provider name to record on the result
            provider_type: Response shape; detected from the payload if None
            fallback_used: Whether the provider was not the primary one

        Returns:
            IdentificationResult with candidates sorted by confidence
        """
        if not isinstance(raw, Mapping):
            logger.warning(
                f"Malformed payload from {source_service}: "
                f"expected an object, got {type(raw).__name__}"
            )
            return IdentificationResult(
                source_service=source_service,
                fallback_used=fallback_used,
                error=f"Malformed payload from {source_service}",
            )

        if provider_type is None:
            provider_type = self.detect_provider_type(raw)

        if provider_type == ProviderType.PLANTNET:
            parsed = self._parse_plantnet(raw)
        elif provider_type == ProviderType.PLANT_ID:
            parsed = self._parse_plant_id(raw)
        else:
            parsed = self._parse_canonical(raw)

        candidates = self._rank(parsed)

        logger.debug(
            f"Normalized {len(candidates)} candidate(s) from {source_service} "
            f"({provider_type.value})"
        )

        return IdentificationResult(
            candidates=candidates,
            source_service=source_service,
            fallback_used=fallback_used,
        )

    def detect_provider_type(self, raw: Mapping[str, Any]) -> ProviderType:
        """Guess the response shape from its top-level keys."""
        if "results" in raw:
            return ProviderType.PLANTNET
        if "result" in raw or "suggestions" in raw:
            return ProviderType.PLANT_ID
        return ProviderType.CANONICAL

    # === Shape parsers ===

    def _parse_plantnet(self, raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
        parsed = []
        for item in self._as_list(raw.get("results")):
            if not isinstance(item, Mapping):
                continue
            species = self._as_mapping(item.get("species"))
            scientific_name = (
                species.get("scientificNameWithoutAuthor")
                or species.get("scientificName")
            )
            parsed.append({
                "scientific_name": scientific_name,
                "common_names": self._extract_common_names(species.get("commonNames")),
                "family": self._taxon_name(species.get("family")),
                "genus": self._taxon_name(species.get("genus")),
                "confidence": item.get("score"),
            })
        return parsed

    def _parse_plant_id(self, raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
        result = self._as_mapping(raw.get("result"))

        # v3 nests everything under "result"; v2 keeps it at the top level
        if result:
            is_plant = self._as_mapping(result.get("is_plant"))
            if is_plant.get("binary") is False:
                return []
            classification = self._as_mapping(result.get("classification"))
            suggestions = self._as_list(classification.get("suggestions"))
        else:
            if raw.get("is_plant") is False:
                return []
            suggestions = self._as_list(raw.get("suggestions"))

        parsed = []
        for suggestion in suggestions:
            if not isinstance(suggestion, Mapping):
                continue
            details = self._as_mapping(
                suggestion.get("details") or suggestion.get("plant_details")
            )
            taxonomy = self._as_mapping(details.get("taxonomy"))
            parsed.append({
                "scientific_name": suggestion.get("name") or suggestion.get("plant_name"),
                "common_names": self._extract_common_names(details.get("common_names")),
                "family": taxonomy.get("family"),
                "genus": taxonomy.get("genus"),
                "confidence": suggestion.get("probability"),
            })
        return parsed

    def _parse_canonical(self, raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
        parsed = []
        for item in self._as_list(raw.get("candidates")):
            if not isinstance(item, Mapping):
                continue
            parsed.append({
                "scientific_name": item.get("scientificName"),
                "common_names": self._extract_common_names(item.get("commonNames")),
                "family": item.get("family"),
                "genus": item.get("genus"),
                "confidence": item.get("confidence"),
            })
        return parsed

    # === Field helpers ===

    def _rank(self, parsed: List[Dict[str, Any]]) -> List[IdentificationCandidate]:
        """Fill sentinels, clamp confidences, sort and assign ranks."""
        cleaned = []
        for entry in parsed:
            scientific_name = self._clean_text(entry["scientific_name"]) or UNKNOWN_SPECIES
            genus = self._clean_text(entry["genus"]) or self._genus_from_name(scientific_name)
            cleaned.append({
                "scientific_name": scientific_name,
                "common_names": tuple(entry["common_names"]),
                "family": self._clean_text(entry["family"]) or UNKNOWN_FAMILY,
                "genus": genus,
                "confidence": self.clamp_confidence(entry["confidence"]),
            })

        # sorted() is stable, so equal confidences keep provider order
        cleaned = sorted(cleaned, key=lambda c: c["confidence"], reverse=True)

        return [
            IdentificationCandidate(rank=index + 1, **entry)
            for index, entry in enumerate(cleaned)
        ]

    @staticmethod
    def clamp_confidence(value: Any) -> float:
        """Coerce a provider score into [0, 1]; unusable values become 0."""
        if isinstance(value, bool):
            return 0.0
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(confidence):
            return 0.0
        return max(0.0, min(1.0, confidence))

    def _extract_common_names(self, value: Any) -> List[str]:
        """
        Flatten common names while keeping provider order.

        Accepts a plain list or a mapping of language code to list.
        """
        if isinstance(value, str):
            values = [value]
        elif isinstance(value, Mapping):
            languages = [lang for lang in self.LANGUAGE_PRIORITY if lang in value]
            languages += [lang for lang in value if lang not in languages]
            values = []
            for lang in languages:
                values.extend(self._as_list(value[lang]))
        else:
            values = self._as_list(value)

        names: List[str] = []
        for name in values:
            cleaned = self._clean_text(name)
            if cleaned and cleaned not in names:
                names.append(cleaned)
        return names

    def _taxon_name(self, taxon: Any) -> Optional[str]:
        if isinstance(taxon, str):
            return taxon
        taxon = self._as_mapping(taxon)
        return taxon.get("scientificNameWithoutAuthor") or taxon.get("scientificName")

    @staticmethod
    def _genus_from_name(scientific_name: str) -> str:
        if scientific_name == UNKNOWN_SPECIES:
            return UNKNOWN_GENUS
        return scientific_name.split()[0]

    @staticmethod
    def _clean_text(value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        value = " ".join(value.split())
        return value or None

    @staticmethod
    def _as_mapping(value: Any) -> Mapping[str, Any]:
        return value if isinstance(value, Mapping) else {}

    @staticmethod
    def _as_list(value: Any) -> List[Any]:
        if isinstance(value, (list, tuple)):
            return list(value)
        return []


# Singleton instance
_result_normalizer: Optional[ResultNormalizer] = None


def get_result_normalizer() -> ResultNormalizer:
    """Get singleton result normalizer instance."""
    global _result_normalizer
    if _result_normalizer is None:
        _result_normalizer = ResultNormalizer()
    return _result_normalizer
