"""Heartbeat invocation handler shared by every trigger."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..core.config import PublisherConfig, Settings
from ..core.retry import NoRetry, RetryPolicy
from ..utils.time import Clock, isoformat_millis, utc_now
from .log_sink import LogEvent, LogSink, PublishReceipt, SinkFactory, StreamPublisher

logger = logging.getLogger(__name__)

SinkBuilder = Callable[[PublisherConfig], LogSink]

DEFAULT_MESSAGE = "heartbeat"
DEFAULT_SOURCE = "heartbeat-publisher"
HEARTBEAT_TYPE = "heartbeat"
HEARTBEAT_JOB = "heartbeat"


class HeartbeatHandler:
    """Validate, provision and publish one heartbeat per invocation.

    The handler itself never retries. ``retry_policy`` wraps a whole attempt,
    so each retry validates again, derives a fresh stream name and provisions
    it before publishing.
    """

    def __init__(
        self,
        config: PublisherConfig,
        *,
        sink_factory: SinkBuilder,
        retry_policy: RetryPolicy | None = None,
        clock: Clock = utc_now,
        message: str = DEFAULT_MESSAGE,
        source: str = DEFAULT_SOURCE,
        metadata: Mapping[str, Any] | None = None,
        close_sinks: bool = True,
    ) -> None:
        self._config = config
        self._sink_factory = sink_factory
        self._retry_policy = retry_policy or NoRetry()
        self._clock = clock
        self._message = message
        self._source = source
        self._metadata = dict(metadata) if metadata else None
        self._close_sinks = close_sinks

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        retry_policy: RetryPolicy | None = None,
        metadata: Mapping[str, Any] | None = None,
        clock: Clock = utc_now,
        sink: LogSink | None = None,
    ) -> "HeartbeatHandler":
        """Instantiate the handler from configuration values.

        A provided ``sink`` is shared by every attempt; otherwise one is built
        per attempt for the configured backend.
        """

        def sink_factory(config: PublisherConfig) -> LogSink:
            if sink is not None:
                return sink
            return SinkFactory.create(config.backend, region_name=config.region)

        return cls(
            PublisherConfig.from_settings(settings),
            sink_factory=sink_factory,
            retry_policy=retry_policy,
            clock=clock,
            message=settings.heartbeat_message,
            source=settings.heartbeat_source,
            metadata=metadata,
            close_sinks=sink is None,
        )

    @property
    def config(self) -> PublisherConfig:
        return self._config

    def build_event(self) -> LogEvent:
        """Construct a fresh heartbeat event stamped with the current instant."""

        extra: dict[str, Any] = {}
        if self._metadata:
            extra["metadata"] = dict(self._metadata)
        return LogEvent(
            message=self._message,
            timestamp=isoformat_millis(self._clock()),
            source=self._source,
            type=HEARTBEAT_TYPE,
            extra=extra,
        )

    async def invoke(self, trigger: Mapping[str, Any] | None = None) -> PublishReceipt:
        """Run one invocation; failures are logged and re-raised to the trigger."""

        logger.info("Heartbeat invoked by scheduled event")
        if trigger is not None:
            logger.info("Event: %s", json.dumps(trigger, default=str, sort_keys=True))

        receipt = await self._retry_policy.run(self._attempt)
        logger.info("Handler completed successfully")
        return receipt

    async def _attempt(self) -> PublishReceipt:
        try:
            config = self._config.validate()
            logger.info("Target log group: %s", config.log_group_name)

            # boto3 client construction blocks on credential and endpoint resolution
            sink = await asyncio.to_thread(self._sink_factory, config)
            try:
                publisher = StreamPublisher(
                    log_group=config.log_group_name,
                    stream_prefix=config.log_stream_prefix,
                    sink=sink,
                    clock=self._clock,
                )
                return await publisher.publish(self.build_event())
            finally:
                if self._close_sinks:
                    await sink.close()
        except Exception as exc:
            cause = getattr(exc, "cause", exc)
            logger.exception(
                "Error in heartbeat handler at stage %s: %s: %s",
                getattr(exc, "stage", "setup"),
                type(cause).__name__,
                exc,
            )
            raise


__all__ = [
    "DEFAULT_MESSAGE",
    "DEFAULT_SOURCE",
    "HEARTBEAT_JOB",
    "HEARTBEAT_TYPE",
    "HeartbeatHandler",
    "SinkBuilder",
]
