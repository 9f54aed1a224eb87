"""Heartbeat API endpoints."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.errors import HeartbeatError, MissingConfigError
from ..core.scheduler import AppScheduler
from ..services.heartbeat import HEARTBEAT_JOB, HeartbeatHandler

router = APIRouter(prefix="/heartbeat", tags=["heartbeat"])


def get_heartbeat_handler(request: Request) -> HeartbeatHandler:
    handler = getattr(request.app.state, "heartbeat_handler", None)
    if handler is None:
        raise HTTPException(status_code=503, detail="Heartbeat publisher is not available")
    return handler


def get_scheduler(request: Request) -> AppScheduler | None:
    return getattr(request.app.state, "scheduler", None)


@router.post("")
async def publish_heartbeat(
    handler: HeartbeatHandler = Depends(get_heartbeat_handler),
) -> dict[str, object]:
    """Publish one heartbeat now and return where it landed."""

    try:
        receipt = await handler.invoke({"source": "api"})
    except MissingConfigError as exc:
        raise HTTPException(status_code=503, detail={"stage": exc.stage, "error": str(exc)}) from exc
    except HeartbeatError as exc:
        raise HTTPException(status_code=502, detail={"stage": exc.stage, "error": str(exc)}) from exc

    payload = receipt.as_dict()
    payload["event"] = json.loads(receipt.message)
    return payload


@router.get("/status")
async def heartbeat_status(
    scheduler: AppScheduler | None = Depends(get_scheduler),
) -> dict[str, object]:
    """Return the scheduler state and the outcome of the last scheduled heartbeat."""

    if scheduler is None:
        return {"scheduler_running": False, "interval_seconds": None, "last_run": None}

    last_run = scheduler.last_run(HEARTBEAT_JOB)
    return {
        "scheduler_running": scheduler.running,
        "interval_seconds": scheduler.interval_seconds,
        "last_run": last_run.as_dict() if last_run else None,
    }


__all__ = ["router"]
