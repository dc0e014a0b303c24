"""
Identification Package

Turns an uploaded photo into one canonical species record using external
identification services with ordered fallback.

Components:
- IdentificationProvider: Base interface for upstream services
- PlantIdProvider / PlantNetProvider: HTTP clients for Plant.id and Pl@ntNet
- ResultNormalizer: Converts provider responses to IdentificationResult
- FallbackSelector: Sequential primary/secondary provider selection
"""

from plantmatch.identification.base import (
    IdentificationProvider,
    IdentificationCandidate,
    IdentificationResult,
    ProviderAttempt,
)
from plantmatch.identification.normalizer import ResultNormalizer, get_result_normalizer
from plantmatch.identification.providers import (
    PlantIdProvider,
    PlantNetProvider,
    build_providers,
)
from plantmatch.identification.fallback import FallbackSelector
from plantmatch.identification.image_payload import (
    ImagePayload,
    decode_base64_image,
    validate_image_bytes,
)

__all__ = [
    "IdentificationProvider",
    "IdentificationCandidate",
    "IdentificationResult",
    "ProviderAttempt",
    "ResultNormalizer",
    "get_result_normalizer",
    "PlantIdProvider",
    "PlantNetProvider",
    "build_providers",
    "FallbackSelector",
    "ImagePayload",
    "decode_base64_image",
    "validate_image_bytes",
]
