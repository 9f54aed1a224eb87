"""Error taxonomy for heartbeat invocations and storage helpers."""

from __future__ import annotations


class HeartbeatError(Exception):
    """Base class for failures raised by the publisher.

    ``stage`` names the invocation step that failed and ``retryable`` tells a
    retry policy whether another attempt can change the outcome.
    """

    stage: str = "unknown"
    retryable: bool = True


class MissingConfigError(HeartbeatError):
    """A required configuration value is missing or empty."""

    stage = "validation"
    retryable = False

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required environment variable: {field}")


class UnsupportedBackendError(HeartbeatError, ValueError):
    """The configured log sink backend is not one the publisher can build."""

    stage = "validation"
    retryable = False

    def __init__(self, backend: str) -> None:
        self.backend = backend
        super().__init__(f"Unsupported log sink backend '{backend}'")


class ProvisionFailedError(HeartbeatError):
    """Creating the log stream failed for a reason other than it already existing."""

    stage = "provision"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(str(cause))


class PublishFailedError(HeartbeatError):
    """Appending the event to the log stream failed."""

    stage = "publish"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(str(cause))


class ChunkedWriteFailedError(HeartbeatError):
    """A batch write failed part way; groups before ``failed_group_index`` were written."""

    stage = "batch_write"

    def __init__(self, cause: BaseException, failed_group_index: int) -> None:
        self.cause = cause
        self.failed_group_index = failed_group_index
        super().__init__(f"Batch write failed at group {failed_group_index}: {cause}")


class RetryExhaustedError(HeartbeatError):
    """Every attempt allowed by the retry policy failed."""

    stage = "retry"
    retryable = False

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts: {last_error}")


__all__ = [
    "ChunkedWriteFailedError",
    "HeartbeatError",
    "MissingConfigError",
    "ProvisionFailedError",
    "PublishFailedError",
    "RetryExhaustedError",
    "UnsupportedBackendError",
]
