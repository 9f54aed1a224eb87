from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from heartbeat_publisher.core.config import PublisherConfig, Settings
from heartbeat_publisher.core.errors import (
    MissingConfigError,
    ProvisionFailedError,
    PublishFailedError,
    RetryExhaustedError,
    UnsupportedBackendError,
)
from heartbeat_publisher.core.retry import ExponentialBackoffRetry
from heartbeat_publisher.services.heartbeat import HeartbeatHandler
from heartbeat_publisher.services.log_sink import LogSink, MemoryLogSink, ProvisionStatus

INSTANT = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

SCHEDULED_EVENT = {
    "version": "0",
    "id": "event-id",
    "detail-type": "Scheduled Event",
    "source": "aws.events",
    "account": "123456789012",
    "time": "2025-01-01T12:00:00Z",
    "region": "us-east-1",
    "resources": ["arn:aws:events:us-east-1:123456789012:rule/rule-name"],
    "detail": {},
}


def fixed_clock() -> datetime:
    return INSTANT


class RecordingSinkFactory:
    def __init__(self, sink: LogSink) -> None:
        self.sink = sink
        self.configs: list[PublisherConfig] = []

    def __call__(self, config: PublisherConfig) -> LogSink:
        self.configs.append(config)
        return self.sink


class FlakySink(MemoryLogSink):
    """Fails the first ``failures`` appends."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self._failures = failures

    async def put_event(self, log_group: str, log_stream: str, message: str, timestamp_ms: int) -> None:
        if self._failures > 0:
            self._failures -= 1
            self.put_calls.append((log_group, log_stream, None))  # type: ignore[arg-type]
            raise ClientError(
                {"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}},
                "PutLogEvents",
            )
        await super().put_event(log_group, log_stream, message, timestamp_ms)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_handler(
    factory: RecordingSinkFactory,
    *,
    group: str = "/test/heartbeats",
    prefix: str = "test-stream",
    **kwargs: object,
) -> HeartbeatHandler:
    return HeartbeatHandler(
        PublisherConfig(log_group_name=group, log_stream_prefix=prefix),
        sink_factory=factory,
        clock=fixed_clock,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_handler_publishes_heartbeat_into_timestamped_stream() -> None:
    sink = MemoryLogSink()
    handler = make_handler(RecordingSinkFactory(sink))

    receipt = await handler.invoke(SCHEDULED_EVENT)

    stream = "test-stream-2025-01-01-12-00-00"
    assert receipt.log_stream == stream
    assert sink.create_calls == [("/test/heartbeats", stream)]
    events = sink.events("/test/heartbeats", stream)
    assert len(events) == 1

    body = json.loads(events[0].message)
    assert body["type"] == "heartbeat"
    assert body["message"] == "heartbeat"
    assert body["source"] == "heartbeat-publisher"
    assert body["timestamp"] == "2025-01-01T12:00:00.000Z"
    assert "metadata" not in body


@pytest.mark.asyncio
async def test_handler_ignores_trigger_payload_contents() -> None:
    first_sink = MemoryLogSink()
    second_sink = MemoryLogSink()

    first = await make_handler(RecordingSinkFactory(first_sink)).invoke(SCHEDULED_EVENT)
    second = await make_handler(RecordingSinkFactory(second_sink)).invoke(None)

    assert first.log_stream == second.log_stream
    assert first.message == second.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("group", "prefix", "field"),
    [
        ("", "test-stream", "LOG_GROUP_NAME"),
        ("/test/heartbeats", "", "LOG_STREAM_PREFIX"),
    ],
)
async def test_missing_configuration_short_circuits(group: str, prefix: str, field: str) -> None:
    sink = MemoryLogSink()
    factory = RecordingSinkFactory(sink)
    handler = make_handler(factory, group=group, prefix=prefix)

    with pytest.raises(MissingConfigError) as excinfo:
        await handler.invoke(SCHEDULED_EVENT)

    assert str(excinfo.value) == f"Missing required environment variable: {field}"
    assert excinfo.value.field == field
    assert factory.configs == []
    assert sink.create_calls == []
    assert sink.put_calls == []


@pytest.mark.asyncio
async def test_unsupported_backend_fails_before_any_attempt(caplog: pytest.LogCaptureFixture) -> None:
    sink = MemoryLogSink()
    factory = RecordingSinkFactory(sink)
    sleep = RecordingSleep()
    handler = HeartbeatHandler(
        PublisherConfig("/test/heartbeats", "test-stream", backend="kafka"),
        sink_factory=factory,
        retry_policy=ExponentialBackoffRetry(3, sleep=sleep),
        clock=fixed_clock,
    )

    caplog.set_level(logging.INFO)

    with pytest.raises(UnsupportedBackendError, match="kafka"):
        await handler.invoke(SCHEDULED_EVENT)

    assert sleep.delays == []
    assert factory.configs == []
    assert sink.create_calls == []
    assert "at stage validation" in caplog.text


@pytest.mark.asyncio
async def test_sink_is_built_off_the_event_loop_thread() -> None:
    loop_thread = threading.get_ident()
    builder_threads: list[int] = []
    sink = MemoryLogSink()

    def build(config: PublisherConfig) -> LogSink:
        builder_threads.append(threading.get_ident())
        return sink

    handler = HeartbeatHandler(
        PublisherConfig("/test/heartbeats", "test-stream"),
        sink_factory=build,
        clock=fixed_clock,
    )

    await handler.invoke()

    assert len(builder_threads) == 1
    assert builder_threads[0] != loop_thread


@pytest.mark.asyncio
async def test_provision_failure_propagates_without_publishing(caplog: pytest.LogCaptureFixture) -> None:
    sink = MemoryLogSink()
    sink.ensure_error = ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": "User is not authorized"}},
        "CreateLogStream",
    )
    handler = make_handler(RecordingSinkFactory(sink))
    caplog.set_level(logging.INFO)

    with pytest.raises(ProvisionFailedError) as excinfo:
        await handler.invoke(SCHEDULED_EVENT)

    assert "User is not authorized" in str(excinfo.value)
    assert sink.put_calls == []
    assert "stage provision" in caplog.text
    assert "ClientError" in caplog.text


@pytest.mark.asyncio
async def test_publish_failure_is_logged_and_reraised(caplog: pytest.LogCaptureFixture) -> None:
    sink = MemoryLogSink()
    sink.put_error = RuntimeError("connection reset")
    handler = make_handler(RecordingSinkFactory(sink))
    caplog.set_level(logging.INFO)

    with pytest.raises(PublishFailedError, match="connection reset"):
        await handler.invoke()

    failures = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert failures
    assert failures[-1].exc_info is not None
    assert "stage publish" in failures[-1].getMessage()
    assert "RuntimeError" in failures[-1].getMessage()


@pytest.mark.asyncio
async def test_handler_with_backoff_retries_whole_attempt() -> None:
    sink = FlakySink(failures=2)
    sleep = RecordingSleep()
    factory = RecordingSinkFactory(sink)
    handler = make_handler(factory, retry_policy=ExponentialBackoffRetry(3, sleep=sleep))

    receipt = await handler.invoke()

    assert sleep.delays == [2.0, 4.0]
    assert len(factory.configs) == 3
    assert len(sink.create_calls) == 3
    assert receipt.provision_status is ProvisionStatus.ALREADY_EXISTS
    assert len(sink.events(receipt.log_group, receipt.log_stream)) == 1


@pytest.mark.asyncio
async def test_handler_with_backoff_gives_up_after_max_attempts() -> None:
    sink = FlakySink(failures=10)
    sleep = RecordingSleep()
    handler = make_handler(
        RecordingSinkFactory(sink), retry_policy=ExponentialBackoffRetry(3, sleep=sleep)
    )

    with pytest.raises(RetryExhaustedError) as excinfo:
        await handler.invoke()

    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.last_error, PublishFailedError)
    assert len(sink.put_calls) == 3
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_missing_configuration_is_not_retried() -> None:
    sleep = RecordingSleep()
    factory = RecordingSinkFactory(MemoryLogSink())
    handler = make_handler(factory, group="", retry_policy=ExponentialBackoffRetry(3, sleep=sleep))

    with pytest.raises(MissingConfigError):
        await handler.invoke()

    assert sleep.delays == []
    assert factory.configs == []


@pytest.mark.asyncio
async def test_handler_adds_metadata_and_custom_message() -> None:
    sink = MemoryLogSink()
    handler = make_handler(
        RecordingSinkFactory(sink),
        message="I wish for a new heartbeat",
        source="cron",
        metadata={"host": "container-1", "region": "eu-west-2"},
    )

    receipt = await handler.invoke()

    body = json.loads(receipt.message)
    assert body["message"] == "I wish for a new heartbeat"
    assert body["source"] == "cron"
    assert body["metadata"] == {"host": "container-1", "region": "eu-west-2"}


@pytest.mark.asyncio
async def test_from_settings_shares_provided_sink() -> None:
    settings = Settings(
        LOG_GROUP_NAME="/test/heartbeats",
        LOG_STREAM_PREFIX="test-stream",
        HEARTBEAT_MESSAGE="ping",
        LOG_SINK_BACKEND="memory",
    )
    sink = MemoryLogSink()
    handler = HeartbeatHandler.from_settings(settings, sink=sink, clock=fixed_clock)

    await handler.invoke()
    receipt = await handler.invoke()

    assert handler.config.log_group_name == "/test/heartbeats"
    assert receipt.provision_status is ProvisionStatus.ALREADY_EXISTS
    assert len(sink.events(receipt.log_group, receipt.log_stream)) == 2
    assert json.loads(receipt.message)["message"] == "ping"


__all__ = [
    "test_from_settings_shares_provided_sink",
    "test_handler_adds_metadata_and_custom_message",
    "test_handler_ignores_trigger_payload_contents",
    "test_handler_publishes_heartbeat_into_timestamped_stream",
    "test_handler_with_backoff_gives_up_after_max_attempts",
    "test_handler_with_backoff_retries_whole_attempt",
    "test_missing_configuration_is_not_retried",
    "test_missing_configuration_short_circuits",
    "test_provision_failure_propagates_without_publishing",
    "test_publish_failure_is_logged_and_reraised",
    "test_sink_is_built_off_the_event_loop_thread",
    "test_unsupported_backend_fails_before_any_attempt",
]
