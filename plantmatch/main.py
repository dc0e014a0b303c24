"""
Plant Marketplace Matching API

FastAPI application that identifies plant photos through external
identification services and matches them against marketplace listings.

This is the main entry point for the application.

Usage:
    uvicorn plantmatch.main:app --reload
    uvicorn plantmatch.main:app --host 0.0.0.0 --port 8000

Production:
    gunicorn plantmatch.main:app -k uvicorn.workers.UvicornWorker -w 4
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plantmatch.core.config import get_settings
from plantmatch.api.routes import aliases_router, health_router, identify_router, match_router
from plantmatch.api.routes.health import set_startup_time
from plantmatch.services.marketplace_service import get_marketplace_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Build providers and load the alias table

    Runs on shutdown:
    - Log shutdown
    """
    logger.info(f"Starting {settings.app_name}...")

    # Record startup time
    set_startup_time()

    # Raises AliasConfigurationError for a malformed alias file
    service = get_marketplace_service()
    status = service.get_status()
    unconfigured = [p["name"] for p in status["providers"] if not p["is_configured"]]
    if unconfigured:
        logger.warning(f"Providers without API keys: {unconfigured}")
    logger.info(f"Alias table loaded with {status['alias_entries']} entries")

    logger.info("Application startup complete")

    yield

    # Cleanup on shutdown
    logger.info(f"Shutting down {settings.app_name}...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## Plant Marketplace Matching API

Identify a plant from a photo and find matching crops in the marketplace.

### Features

- **Provider Fallback**: Plant.id first, PlantNet when the primary fails or is unsure
- **Canonical Results**: One candidate format regardless of provider
- **Fuzzy Matching**: Name, scientific name and alias scores per listing
- **Tiered Recommendations**: exact, strong, good and weak matches with action hints

### API Endpoints

- `POST /api/v1/identify` - Identify a plant photo
- `POST /api/v1/match` - Match a plant name against listings
- `POST /api/v1/match/identify` - Identify and match in one call
- `GET /api/v1/aliases` - Current alias table
- `POST /api/v1/aliases` - Add aliases
- `GET /api/v1/health` - Health check
- `GET /api/v1/health/ready` - Detailed readiness check

### Image Requirements

- Format: JPEG or PNG (base64-encoded)
- Clear view of leaves, flowers or fruit
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
            "details": str(exc) if settings.debug else None
        }
    )


# Include routers
app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(identify_router, prefix=settings.api_prefix)
app.include_router(match_router, prefix=settings.api_prefix)
app.include_router(aliases_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "documentation": "/docs",
        "health_check": f"{settings.api_prefix}/health",
        "identify_endpoint": f"{settings.api_prefix}/identify",
        "match_endpoint": f"{settings.api_prefix}/match",
    }


@app.get("/api", tags=["Root"])
async def api_info():
    """API information endpoint."""
    return await root()


# Entry point for running with Python
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "plantmatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
