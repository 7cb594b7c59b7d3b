"""Health check endpoints."""

import sqlite3
from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from core import __version__
from core.config import Settings
from api.services.imports import get_settings


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


def _storage_status(settings: Settings) -> str:
    try:
        conn = sqlite3.connect(settings.db_path)
        try:
            conn.execute("SELECT 1")
        finally:
            conn.close()
    except sqlite3.Error:
        return "down"
    return "up"


@router.get("/health", response_model=HealthResponse)
def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint."""
    storage = _storage_status(settings)
    return HealthResponse(
        status="healthy" if storage == "up" else "degraded",
        timestamp=datetime.utcnow().isoformat(),
        version=__version__,
        services={
            "api": "up",
            "temporal": "configured" if settings.temporal_endpoint else "not configured",
            "storage": storage,
        }
    )


@router.get("/ready")
async def readiness_check() -> Dict[str, str]:
    """Readiness probe for Kubernetes."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check(response: Response) -> Dict[str, str]:
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}
