"""API routers."""

from conceptforge.api.routes.concept_map import router as concept_map_router
from conceptforge.api.routes.health import router as health_router

__all__ = ["concept_map_router", "health_router"]
