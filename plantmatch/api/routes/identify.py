"""
Identification API endpoints.

- Identify a plant photo with provider fallback
- List the configured providers
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from plantmatch.core.dependencies import get_fallback_selector, get_max_image_size_mb
from plantmatch.identification.fallback import FallbackSelector
from plantmatch.identification.image_payload import decode_base64_image
from plantmatch.models.schemas import ImageRequest, ErrorResponse
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    get_marketplace_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/identify", tags=["Identification"])


@router.post(
    "",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid image"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Identify plant image",
    description="""
    Identify the plant in a photo.

    Providers are called one at a time in the configured order (Plant.id,
    then PlantNet). The first answer whose top candidate reaches the
    minimum confidence wins.

    When every provider fails the response is still 200: `candidates` is
    empty and `error` explains why, so the client can offer manual entry.
    """
)
async def identify_plant(
    request: ImageRequest,
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
    max_image_size_mb: float = Depends(get_max_image_size_mb),
) -> dict:
    """Identify a plant photo."""
    try:
        payload = decode_base64_image(request.image, max_size_mb=max_image_size_mb)
        logger.info(
            f"Received identification request ({payload.mime_type}, "
            f"{payload.size[0]}x{payload.size[1]})"
        )

        result = await service.identify(payload.data)

        top = result.top_candidate
        if top is not None:
            logger.info(
                f"Identification complete: {top.scientific_name} "
                f"({top.confidence:.2%}) via {result.source_service}"
            )
        else:
            logger.info(f"Identification returned no candidates: {result.error}")

        return result.to_dict()

    except ValueError as e:
        logger.warning(f"Validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/providers", summary="List identification providers")
async def list_providers(
    selector: FallbackSelector = Depends(get_fallback_selector),
) -> dict:
    """Providers in fallback order with their configuration status."""
    return {
        "providers": selector.get_provider_info(),
        "min_confidence": selector.min_confidence,
    }
