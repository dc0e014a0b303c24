# Data models module
# API schemas live in plantmatch.models.schemas; they depend on the matching
# package, which itself imports these enums.
from plantmatch.models.enums import MatchTier, ListingStatus, AttemptOutcome, ProviderType

__all__ = [
    "MatchTier",
    "ListingStatus",
    "AttemptOutcome",
    "ProviderType",
]
