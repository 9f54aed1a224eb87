"""Retry strategies applied around a whole heartbeat attempt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from .errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]


def _is_retryable(exc: BaseException) -> bool:
    return getattr(exc, "retryable", True)


class RetryPolicy(Protocol):
    """Run an async operation, deciding whether failures are attempted again."""

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Execute ``operation`` under the policy."""


class NoRetry:
    """Single attempt; failures go straight to the caller's retry mechanism."""

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await operation()


class ExponentialBackoffRetry:
    """Bounded retry sleeping ``base_seconds ** attempt`` between attempts."""

    def __init__(
        self,
        max_attempts: int = 3,
        *,
        base_seconds: float = 2.0,
        sleep: Sleep | None = None,
    ) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        if base_seconds < 0:
            msg = "base_seconds must not be negative"
            raise ValueError(msg)

        self.max_attempts = max_attempts
        self.base_seconds = base_seconds
        self._sleep = sleep or asyncio.sleep

    def backoff_seconds(self, attempt: int) -> float:
        """Return the delay that follows the given failed attempt (1-based)."""

        return float(self.base_seconds**attempt)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as exc:
                if not _is_retryable(exc):
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "Failed after %s attempts",
                        self.max_attempts,
                        extra={
                            "attempts": self.max_attempts,
                            "error_name": type(exc).__name__,
                            "error_message": str(exc),
                        },
                    )
                    raise RetryExhaustedError(self.max_attempts, exc) from exc

                backoff = self.backoff_seconds(attempt)
                logger.error(
                    "Attempt %s/%s failed (%s: %s), retrying in %s seconds",
                    attempt,
                    self.max_attempts,
                    type(exc).__name__,
                    exc,
                    backoff,
                )
                await self._sleep(backoff)


__all__ = ["ExponentialBackoffRetry", "NoRetry", "RetryPolicy"]
