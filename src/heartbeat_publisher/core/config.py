"""Application configuration management."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal, get_args

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import MissingConfigError, UnsupportedBackendError

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"

SinkBackend = Literal["cloudwatch", "memory"]
SUPPORTED_SINK_BACKENDS: tuple[str, ...] = get_args(SinkBackend)

# Load environment variables early to support tools that do not rely on Pydantic directly.
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    load_dotenv()


class Settings(BaseSettings):
    """Defines environment-driven application settings."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")

    app_name: str = Field(default="Heartbeat Publisher", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Left empty by default so validation can name the missing variable.
    log_group_name: str = Field(default="", alias="LOG_GROUP_NAME")
    log_stream_prefix: str = Field(default="", alias="LOG_STREAM_PREFIX")
    aws_region: str | None = Field(default=None, alias="AWS_REGION")
    log_sink_backend: SinkBackend = Field(default="cloudwatch", alias="LOG_SINK_BACKEND")

    heartbeat_message: str = Field(default="heartbeat", alias="HEARTBEAT_MESSAGE")
    heartbeat_source: str = Field(default="heartbeat-publisher", alias="HEARTBEAT_SOURCE")
    heartbeat_interval_seconds: int = Field(default=60, alias="HEARTBEAT_INTERVAL_SECONDS")
    heartbeat_scheduler_enabled: bool = Field(
        default=False, alias="HEARTBEAT_SCHEDULER_ENABLED"
    )
    heartbeat_max_attempts: int = Field(default=3, alias="HEARTBEAT_MAX_ATTEMPTS")
    heartbeat_backoff_base_seconds: float = Field(
        default=2.0, alias="HEARTBEAT_BACKOFF_BASE_SECONDS"
    )


@dataclass(frozen=True, slots=True)
class PublisherConfig:
    """Immutable per-invocation publisher configuration."""

    log_group_name: str
    log_stream_prefix: str
    region: str | None = None
    backend: str = "cloudwatch"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PublisherConfig":
        return cls(
            log_group_name=settings.log_group_name,
            log_stream_prefix=settings.log_stream_prefix,
            region=settings.aws_region,
            backend=settings.log_sink_backend,
        )

    def validate(self) -> "PublisherConfig":
        """Raise for the first empty required field, then for an unknown backend."""

        if not self.log_group_name:
            raise MissingConfigError("LOG_GROUP_NAME")
        if not self.log_stream_prefix:
            raise MissingConfigError("LOG_STREAM_PREFIX")
        if self.backend not in SUPPORTED_SINK_BACKENDS:
            raise UnsupportedBackendError(self.backend)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
