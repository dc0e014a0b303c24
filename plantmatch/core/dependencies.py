"""
FastAPI dependency injection.

Provides dependency injection for services and components,
enabling easy testing and component swapping.
"""

from fastapi import Depends

from plantmatch.core.config import Settings, get_settings
from plantmatch.matching.alias_table import AliasTable
from plantmatch.identification.fallback import FallbackSelector
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    get_marketplace_service,
)


def get_alias_table(
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
) -> AliasTable:
    """Alias table used by the active matcher."""
    return service.alias_table


def get_fallback_selector(
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
) -> FallbackSelector:
    """Provider selector used by the active service."""
    return service.selector


def get_max_image_size_mb(settings: Settings = Depends(get_settings)) -> float:
    """Upload size limit for image payloads."""
    return settings.max_image_size_mb


# Re-export the main service getter
__all__ = [
    "get_settings",
    "get_marketplace_service",
    "get_alias_table",
    "get_fallback_selector",
    "get_max_image_size_mb",
]
