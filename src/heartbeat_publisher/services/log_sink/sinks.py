"""Log sink implementations."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Protocol

import boto3
from botocore.exceptions import ClientError

from ...core.errors import UnsupportedBackendError
from .types import ProvisionResult

logger = logging.getLogger(__name__)

ALREADY_EXISTS_CODE = "ResourceAlreadyExistsException"


def error_code(exc: BaseException) -> str | None:
    """Return the AWS error code carried by a botocore ``ClientError``."""

    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


class LogSink(Protocol):
    """Protocol representing the log-storage collaborator."""

    async def ensure_stream(self, log_group: str, log_stream: str) -> ProvisionResult:
        """Create the stream, reporting an existing stream as a distinct outcome."""

    async def put_event(
        self, log_group: str, log_stream: str, message: str, timestamp_ms: int
    ) -> None:
        """Append one message to the stream."""

    async def close(self) -> None:
        """Release any underlying resources."""


class CloudWatchLogSink:
    """CloudWatch Logs client wrapper.

    boto3 calls block, so each one runs in a worker thread.
    """

    def __init__(self, *, client: Any | None = None, region_name: str | None = None) -> None:
        self._client = client or boto3.client("logs", region_name=region_name)

    @property
    def client(self) -> Any:
        return self._client

    async def ensure_stream(self, log_group: str, log_stream: str) -> ProvisionResult:
        try:
            await asyncio.to_thread(
                self._client.create_log_stream,
                logGroupName=log_group,
                logStreamName=log_stream,
            )
        except ClientError as exc:
            if error_code(exc) == ALREADY_EXISTS_CODE:
                logger.info("Log stream already exists: %s", log_stream)
                return ProvisionResult.already_exists(log_group, log_stream)
            return ProvisionResult.failed(log_group, log_stream, exc)
        except Exception as exc:  # noqa: BLE001 - surfaced as a FAILED outcome
            return ProvisionResult.failed(log_group, log_stream, exc)

        logger.info("Created log stream: %s", log_stream)
        return ProvisionResult.created(log_group, log_stream)

    async def put_event(
        self, log_group: str, log_stream: str, message: str, timestamp_ms: int
    ) -> None:
        await asyncio.to_thread(
            self._client.put_log_events,
            logGroupName=log_group,
            logStreamName=log_stream,
            logEvents=[{"timestamp": timestamp_ms, "message": message}],
        )

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()


@dataclass(frozen=True, slots=True)
class StoredLogEvent:
    timestamp_ms: int
    message: str


class MemoryLogSink:
    """In-process sink used for local runs and tests."""

    def __init__(self) -> None:
        self.streams: dict[tuple[str, str], list[StoredLogEvent]] = defaultdict(list)
        self.create_calls: list[tuple[str, str]] = []
        self.put_calls: list[tuple[str, str, StoredLogEvent]] = []
        self.ensure_error: Exception | None = None
        self.put_error: Exception | None = None

    async def ensure_stream(self, log_group: str, log_stream: str) -> ProvisionResult:
        self.create_calls.append((log_group, log_stream))
        if self.ensure_error is not None:
            return ProvisionResult.failed(log_group, log_stream, self.ensure_error)
        key = (log_group, log_stream)
        if key in self.streams:
            return ProvisionResult.already_exists(log_group, log_stream)
        self.streams[key] = []
        return ProvisionResult.created(log_group, log_stream)

    async def put_event(
        self, log_group: str, log_stream: str, message: str, timestamp_ms: int
    ) -> None:
        stored = StoredLogEvent(timestamp_ms=timestamp_ms, message=message)
        self.put_calls.append((log_group, log_stream, stored))
        if self.put_error is not None:
            raise self.put_error
        key = (log_group, log_stream)
        if key not in self.streams:
            msg = f"The specified log stream does not exist: {log_stream}"
            raise LookupError(msg)
        self.streams[key].append(stored)

    def events(self, log_group: str, log_stream: str) -> list[StoredLogEvent]:
        return list(self.streams.get((log_group, log_stream), []))

    async def close(self) -> None:
        return None


class SinkFactory:
    """Factory helper to instantiate configured sinks."""

    @staticmethod
    def create(backend: str, *, region_name: str | None = None) -> LogSink:
        normalized = backend.strip().lower()
        if normalized == "cloudwatch":
            return CloudWatchLogSink(region_name=region_name)
        if normalized == "memory":
            return MemoryLogSink()

        raise UnsupportedBackendError(backend)


__all__ = [
    "ALREADY_EXISTS_CODE",
    "CloudWatchLogSink",
    "LogSink",
    "MemoryLogSink",
    "SinkFactory",
    "StoredLogEvent",
    "error_code",
]
