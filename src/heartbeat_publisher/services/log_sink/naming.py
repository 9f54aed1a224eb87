"""Log stream naming."""

from __future__ import annotations

import re
from datetime import datetime

from ...utils.time import ensure_utc, utc_now

STREAM_NAME_PATTERN = re.compile(r"^(?P<prefix>.+)-(?P<stamp>\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2})$")


def generate_stream_name(prefix: str, now: datetime | None = None) -> str:
    """Return ``{prefix}-YYYY-MM-DD-HH-MM-SS`` for the given instant in UTC.

    The name is truncated to the second, so every publish under the same prefix
    within one wall-clock second lands in the same stream.
    """

    instant = ensure_utc(now) if now is not None else utc_now()
    # strftime("%Y") does not zero-pad years below 1000 on every platform
    stamp = (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"-{instant.hour:02d}-{instant.minute:02d}-{instant.second:02d}"
    )
    return f"{prefix}-{stamp}"


__all__ = ["STREAM_NAME_PATTERN", "generate_stream_name"]
