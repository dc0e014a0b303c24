"""
Health check and system status endpoints.

Provides endpoints for:
- Basic health check
- Liveness probe
- Readiness check (identification providers and alias table)
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional
import time

from plantmatch.core.config import get_settings
from plantmatch.services.marketplace_service import (
    MarketplaceMatchingService,
    get_marketplace_service,
)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: float
    version: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check with component status."""
    status: str
    timestamp: float
    version: str
    components: dict[str, dict]
    uptime_seconds: Optional[float] = None


# Track startup time
_startup_time: Optional[float] = None


def set_startup_time() -> None:
    """Set the startup time (called on app startup)."""
    global _startup_time
    _startup_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Simple health status indicating the service is running.
    """
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=get_settings().app_version
    )


@router.get("/ready", response_model=DetailedHealthResponse)
async def readiness_check(
    service: MarketplaceMatchingService = Depends(get_marketplace_service),
) -> DetailedHealthResponse:
    """
    Readiness check.

    Verifies:
    - At least one identification provider has credentials
    - The alias table is loaded

    Returns:
        Detailed status of all components.
    """
    status = service.get_status()
    providers = status["providers"]
    configured = [p["name"] for p in providers if p["is_configured"]]

    components = {
        "identification": {
            "status": "ready" if configured else "error",
            "providers": providers,
            "configured": configured,
            "min_confidence": status["min_provider_confidence"],
        },
        "matching": {
            "status": "ready",
            "alias_entries": status["alias_entries"],
            "threshold": status["match_threshold"],
        },
    }

    if not configured:
        raise HTTPException(
            status_code=503,
            detail="Service not ready: no identification provider is configured"
        )

    uptime = None
    if _startup_time:
        uptime = time.time() - _startup_time

    return DetailedHealthResponse(
        status="ready",
        timestamp=time.time(),
        version=get_settings().app_version,
        components=components,
        uptime_seconds=uptime
    )


@router.get("/live")
async def liveness_check() -> dict:
    """
    Simple liveness probe for Kubernetes.

    Returns 200 if the process is running.
    """
    return {"status": "alive"}
