"""FastAPI application bootstrap."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging
import socket

from fastapi import FastAPI

from .api import api_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.retry import ExponentialBackoffRetry
from .core.scheduler import AppScheduler
from .services.heartbeat import HEARTBEAT_JOB, HeartbeatHandler
from .services.log_sink import LogSink, MemoryLogSink

logger = logging.getLogger(__name__)


def _shared_sink(settings: Settings) -> LogSink | None:
    # A memory sink only makes sense if every invocation sees the same streams.
    if settings.log_sink_backend.strip().lower() == "memory":
        return MemoryLogSink()
    return None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown hooks."""

    settings = get_settings()
    configure_logging(settings.log_level)

    sink = _shared_sink(settings)
    on_demand = HeartbeatHandler.from_settings(settings, sink=sink)

    scheduler = AppScheduler(interval_seconds=settings.heartbeat_interval_seconds)
    if settings.heartbeat_scheduler_enabled:
        scheduled = HeartbeatHandler.from_settings(
            settings,
            sink=sink,
            retry_policy=ExponentialBackoffRetry(
                settings.heartbeat_max_attempts,
                base_seconds=settings.heartbeat_backoff_base_seconds,
            ),
            metadata={"host": socket.gethostname(), "region": settings.aws_region or "unknown"},
        )
        scheduler.register(HEARTBEAT_JOB, scheduled.invoke)
        await scheduler.start()
    else:
        logger.info("Heartbeat scheduler disabled; use POST /api/heartbeat to publish")

    app.state.settings = settings
    app.state.scheduler = scheduler
    app.state.heartbeat_handler = on_demand
    app.state.log_sink = sink

    try:
        yield
    finally:
        await scheduler.shutdown()


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    application.include_router(api_router, prefix="/api")
    return application


app = create_app()
