"""
Health Routes
Liveness check
"""
from fastapi import APIRouter
from pydantic import BaseModel

from app.core import dependencies
from app.core.config import settings

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    environment: str
    store_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health():
    """Process is up. Reports whether the directory store was configured at startup."""
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        store_configured=dependencies.directory_store is not None,
    )
