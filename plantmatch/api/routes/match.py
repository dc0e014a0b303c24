"""
Crop matching API endpoints.

- Match an identified plant name against marketplace listings
- Identify a photo and match it in one call
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from plantmatch.core.dependencies import get_max_image_size_mb
from plantmatch.identification.image_payload import decode_base64_image
from plantmatch.models.schemas import MatchRequest, IdentifyAndMatchRequest, ErrorResponse
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    get_marketplace_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/match", tags=["Matching"])


@router.post(
    "",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
    },
    summary="Match identified plant to listings",
    description="""
    Fuzzy-match a plant name against catalog listings.

    Only active listings with stock are considered. Each match carries its
    similarity, tier (exact >= 0.95, strong >= 0.80, good >= 0.60,
    weak >= 0.50) and the component scores behind it.
    """
)
async def match_listings(
    request: MatchRequest,
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
) -> dict:
    """Match a plant name against listings."""
    try:
        logger.info(
            f"Received match request for '{request.identified_name}' "
            f"({len(request.listings)} listings)"
        )
        report = service.match(
            request.identified_name,
            [listing.to_domain() for listing in request.listings],
            threshold=request.threshold,
            scientific_name=request.scientific_name,
        )
        return report.to_dict()

    except ValueError as e:
        logger.warning(f"Validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/identify",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Identify photo and match listings",
)
async def identify_and_match(
    request: IdentifyAndMatchRequest,
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
    max_image_size_mb: float = Depends(get_max_image_size_mb),
) -> dict:
    """
    Identify a plant photo, then match the result against listings.

    An unidentified photo returns no matches and a single "none"
    recommendation.
    """
    try:
        payload = decode_base64_image(request.image, max_size_mb=max_image_size_mb)
        logger.info(f"Received identify-and-match request ({len(request.listings)} listings)")

        report = await service.identify_and_match(
            payload.data,
            [listing.to_domain() for listing in request.listings],
            threshold=request.threshold,
        )

        logger.info(
            f"Identify-and-match complete: '{report.identified_name}', "
            f"{report.total_matches} match(es) in {report.processing_time_ms:.0f}ms"
        )
        return report.to_dict()

    except ValueError as e:
        logger.warning(f"Validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e))
