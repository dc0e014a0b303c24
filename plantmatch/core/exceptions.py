"""
Exception hierarchy for the identification and matching pipeline.

Only caller or configuration bugs are raised to the caller. Provider
failures are recovered by the fallback selector, low-confidence answers
and empty match sets are ordinary results.
"""

from typing import Optional


class PlantMatchError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(PlantMatchError, ValueError):
    """Raised for empty images, missing catalogs and out-of-range arguments."""


class AliasConfigurationError(InvalidInputError):
    """Raised when an alias table source contains a malformed entry."""


class ProviderError(PlantMatchError):
    """A single identification provider failed to answer."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None
    ):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within its timeout."""
