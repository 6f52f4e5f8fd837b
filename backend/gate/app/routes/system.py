"""API routes exposing system level information."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..config import Settings
from ..dependencies import get_settings
from ..schemas import HealthStatusResponse


router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health", response_model=HealthStatusResponse)
def get_health_status(settings: Settings = Depends(get_settings)) -> HealthStatusResponse:
    """Liveness check; never gated."""

    return HealthStatusResponse(status="ok", env=settings.env)
