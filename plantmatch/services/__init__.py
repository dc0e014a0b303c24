# Services module
from plantmatch.services.recommendation_service import Recommendation, RecommendationBuilder
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    MatchReport,
    create_marketplace_service,
    get_marketplace_service,
)

__all__ = [
    "Recommendation",
    "RecommendationBuilder",
    "MarketplaceMatchingService",
    "MatchReport",
    "create_marketplace_service",
    "get_marketplace_service",
]
