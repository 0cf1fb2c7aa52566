"""
API Routes
All v1 API endpoints
"""
from app.api.v1.routes.health import router as health_router
from app.api.v1.routes.search import router as search_router
from app.api.v1.routes.handles import router as handles_router

__all__ = [
    "health_router",
    "search_router",
    "handles_router",
]
