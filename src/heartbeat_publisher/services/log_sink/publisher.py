"""Stream publisher coordinating provisioning and event appends."""

from __future__ import annotations

import logging

from ...core.errors import ProvisionFailedError, PublishFailedError
from ...utils.time import Clock, to_epoch_millis, utc_now
from .naming import generate_stream_name
from .sinks import LogSink
from .types import LogEvent, ProvisionResult, ProvisionStatus, PublishReceipt

logger = logging.getLogger(__name__)


class StreamPublisher:
    """Publish events into timestamped log streams under one log group."""

    def __init__(
        self,
        *,
        log_group: str,
        stream_prefix: str,
        sink: LogSink,
        clock: Clock = utc_now,
    ) -> None:
        self._log_group = log_group
        self._stream_prefix = stream_prefix
        self._sink = sink
        self._clock = clock

    @property
    def log_group(self) -> str:
        """Return the target log group."""

        return self._log_group

    @property
    def stream_prefix(self) -> str:
        """Return the prefix used for generated stream names."""

        return self._stream_prefix

    def next_stream_name(self) -> str:
        return generate_stream_name(self._stream_prefix, self._clock())

    async def ensure_stream(self, log_stream: str) -> ProvisionResult:
        """Issue exactly one create call and return its tagged outcome."""

        return await self._sink.ensure_stream(self._log_group, log_stream)

    async def publish_event(
        self,
        log_stream: str,
        event: LogEvent,
        *,
        provision_status: ProvisionStatus | None = None,
    ) -> PublishReceipt:
        """Append ``event`` as one JSON message; sink errors propagate untouched."""

        timestamp_ms = to_epoch_millis(self._clock())
        message = event.to_json()

        logger.info("Publishing log event to %s/%s: %s", self._log_group, log_stream, message)
        await self._sink.put_event(self._log_group, log_stream, message, timestamp_ms)
        logger.info("Successfully published log event to %s/%s: %s", self._log_group, log_stream, message)

        return PublishReceipt(
            log_group=self._log_group,
            log_stream=log_stream,
            transport_timestamp_ms=timestamp_ms,
            message=message,
            provision_status=provision_status,
        )

    async def publish(self, event: LogEvent) -> PublishReceipt:
        """Provision a fresh timestamped stream and append ``event`` to it."""

        log_stream = self.next_stream_name()

        result = await self.ensure_stream(log_stream)
        if not result.ok:
            cause = result.cause or RuntimeError(f"Could not create log stream {log_stream}")
            raise ProvisionFailedError(cause) from cause

        try:
            return await self.publish_event(log_stream, event, provision_status=result.status)
        except Exception as exc:
            raise PublishFailedError(exc) from exc


__all__ = ["StreamPublisher"]
