"""AWS Lambda entry point for EventBridge scheduled heartbeats.

EventBridge delivers an envelope such as::

    {
      "version": "0",
      "id": "event-id",
      "detail-type": "Scheduled Event",
      "source": "aws.events",
      "account": "123456789012",
      "time": "2024-01-01T12:00:00Z",
      "region": "us-east-1",
      "resources": ["arn:aws:events:us-east-1:123456789012:rule/rule-name"],
      "detail": {}
    }

The payload is only logged. Any failure is re-raised so Lambda's own retry
policy decides whether the invocation runs again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from .core.config import Settings
from .core.logging import configure_logging
from .services.heartbeat import HeartbeatHandler


def handler(event: Mapping[str, Any] | None, context: Any = None) -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    heartbeat = HeartbeatHandler.from_settings(settings)
    asyncio.run(heartbeat.invoke(event))
