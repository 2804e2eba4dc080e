"""API routes."""

from finalization_engine.api.routes.finalizations import router as finalizations_router
from finalization_engine.api.routes.health import router as health_router

__all__ = ["finalizations_router", "health_router"]
