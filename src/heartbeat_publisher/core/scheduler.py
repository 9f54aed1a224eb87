"""Fixed-cadence asynchronous scheduler for in-process heartbeat jobs."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..utils.time import isoformat_millis, utc_now

logger = logging.getLogger(__name__)

Callback = Callable[[], Any | Awaitable[Any]]


@dataclass(slots=True)
class JobRun:
    """Outcome of the most recent execution of a registered job."""

    name: str
    started_at: datetime
    finished_at: datetime | None = None
    succeeded: bool | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "started_at": isoformat_millis(self.started_at),
            "finished_at": isoformat_millis(self.finished_at) if self.finished_at else None,
            "succeeded": self.succeeded,
            "error": self.error,
        }


class AppScheduler:
    """Run registered jobs every ``interval_seconds`` until shut down.

    A failing job is logged and recorded; it never stops the loop. Retrying
    within a tick is the job's own concern.
    """

    def __init__(self, interval_seconds: float = 60) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be positive"
            raise ValueError(msg)
        self.interval_seconds = interval_seconds
        self._shutdown_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._jobs: dict[str, Callback] = {}
        self._last_runs: dict[str, JobRun] = {}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def register(self, name: str, callback: Callback) -> None:
        """Register a job to execute on each tick."""

        self._jobs[name] = callback
        logger.debug("Registered scheduler job %s", name)

    def last_run(self, name: str) -> JobRun | None:
        return self._last_runs.get(name)

    async def start(self) -> None:
        """Start the scheduler loop if it is not already running."""

        if self.running:
            logger.debug("Scheduler already running; skipping start")
            return

        self._shutdown_event = asyncio.Event()
        self._task = asyncio.create_task(self._runner(), name="heartbeat-scheduler")
        logger.info("Scheduler started with interval=%s seconds", self.interval_seconds)

    async def shutdown(self) -> None:
        """Signal the background loop to stop and wait for termination."""

        if not self._task:
            return

        self._shutdown_event.set()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("Scheduler stopped")

    async def run_pending(self) -> None:
        """Execute every registered job once, in registration order."""

        if not self._jobs:
            logger.debug("Scheduler tick (no jobs registered)")
            return

        for name, callback in list(self._jobs.items()):
            run = JobRun(name=name, started_at=utc_now())
            self._last_runs[name] = run
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:  # noqa: BLE001 - bubbling up would stop the loop
                run.succeeded = False
                run.error = f"{type(exc).__name__}: {exc}"
                logger.exception("Scheduler job %s raised an exception", name)
            else:
                run.succeeded = True
            finally:
                run.finished_at = utc_now()

    async def _runner(self) -> None:
        while True:
            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(), timeout=float(self.interval_seconds)
                )
                break
            except asyncio.TimeoutError:
                await self.run_pending()
        logger.debug("Scheduler runner exiting")


__all__ = ["AppScheduler", "JobRun"]
