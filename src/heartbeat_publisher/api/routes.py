"""API route definitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.config import Settings, get_settings
from ..utils.time import isoformat_millis, utc_now

router = APIRouter()


@router.get("/health", tags=["health"])
async def healthcheck(settings: Settings = Depends(get_settings)) -> dict[str, object]:
    """Simple health endpoint with configuration metadata."""

    return {
        "status": "ok",
        "application": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "log_group": settings.log_group_name or None,
        "log_stream_prefix": settings.log_stream_prefix or None,
        "sink_backend": settings.log_sink_backend,
        "timestamp": isoformat_millis(utc_now()),
    }
