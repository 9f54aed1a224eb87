"""Shared types for the log sink service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ProvisionStatus(Enum):
    """Outcome tag of a create-stream call."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Typed result of provisioning a log stream."""

    status: ProvisionStatus
    log_group: str
    log_stream: str
    cause: Exception | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when publishing may proceed."""

        return self.status is not ProvisionStatus.FAILED

    @classmethod
    def created(cls, log_group: str, log_stream: str) -> "ProvisionResult":
        return cls(ProvisionStatus.CREATED, log_group, log_stream)

    @classmethod
    def already_exists(cls, log_group: str, log_stream: str) -> "ProvisionResult":
        return cls(ProvisionStatus.ALREADY_EXISTS, log_group, log_stream)

    @classmethod
    def failed(cls, log_group: str, log_stream: str, cause: Exception) -> "ProvisionResult":
        return cls(ProvisionStatus.FAILED, log_group, log_stream, cause)


@dataclass(frozen=True, slots=True)
class LogEvent:
    """Structured event appended to a log stream as one JSON message."""

    message: str
    timestamp: str
    source: str
    type: str
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Serialize the event into a JSON-friendly structure."""

        payload: dict[str, Any] = {
            "message": self.message,
            "timestamp": self.timestamp,
            "source": self.source,
            "type": self.type,
        }
        for key, value in self.extra.items():
            payload.setdefault(key, value)
        return payload

    def to_json(self) -> str:
        """Render the event as a single-line JSON string."""

        return json.dumps(self.as_dict(), separators=(",", ":"), default=str)


@dataclass(frozen=True, slots=True)
class PublishReceipt:
    """Where and when an event was appended."""

    log_group: str
    log_stream: str
    transport_timestamp_ms: int
    message: str
    provision_status: ProvisionStatus | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "log_group": self.log_group,
            "log_stream": self.log_stream,
            "transport_timestamp_ms": self.transport_timestamp_ms,
            "message": self.message,
            "provision_status": self.provision_status.value if self.provision_status else None,
        }


__all__ = ["LogEvent", "ProvisionResult", "ProvisionStatus", "PublishReceipt"]
