"""API routing setup."""

from fastapi import APIRouter

from .heartbeat import router as heartbeat_router
from .routes import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(heartbeat_router)

__all__ = ["api_router"]
