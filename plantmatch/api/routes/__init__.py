# API routes module
from plantmatch.api.routes.aliases import router as aliases_router
from plantmatch.api.routes.health import router as health_router
from plantmatch.api.routes.identify import router as identify_router
from plantmatch.api.routes.match import router as match_router

__all__ = ["aliases_router", "health_router", "identify_router", "match_router"]
