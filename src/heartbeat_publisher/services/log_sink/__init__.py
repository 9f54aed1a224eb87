"""Log sink service package."""

from .naming import generate_stream_name
from .publisher import StreamPublisher
from .sinks import CloudWatchLogSink, LogSink, MemoryLogSink, SinkFactory
from .types import LogEvent, ProvisionResult, ProvisionStatus, PublishReceipt

__all__ = [
    "CloudWatchLogSink",
    "LogEvent",
    "LogSink",
    "MemoryLogSink",
    "ProvisionResult",
    "ProvisionStatus",
    "PublishReceipt",
    "SinkFactory",
    "StreamPublisher",
    "generate_stream_name",
]
