"""Configuration models for Smera.

Pydantic v2 models loaded from a YAML file. Every section has defaults,
so an empty or missing file yields a working configuration.

Example YAML:
    retry:
      max_retries: 2
      initial_delay_seconds: 0.5
    queue:
      backend: sqlite
      db_path: ~/.smera/offline_queue.db
    api:
      base_url: https://smera.example.com/api
    logging:
      level: DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from smera.core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_API_TOKEN_ENV,
    DEFAULT_ATTEMPT_TIMEOUT_SECONDS,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_HEALTH_PATH,
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROBE_INTERVAL_SECONDS,
    DEFAULT_QUEUE_DB_NAME,
    DEFAULT_QUEUE_DIR,
)


class RetryConfig(BaseModel):
    """Immutable retry settings for one executor call.

    Attempt n (n >= 1, a retry) waits
    ``min(max_delay_seconds, initial_delay_seconds * backoff_multiplier ** (n - 1))``
    scaled by a uniform jitter factor in [0.8, 1.2].
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    initial_delay_seconds: float = Field(
        default=DEFAULT_INITIAL_DELAY_SECONDS, ge=0, description="Delay before the first retry"
    )
    backoff_multiplier: float = Field(
        default=DEFAULT_BACKOFF_MULTIPLIER, ge=1, description="Exponential backoff multiplier"
    )
    max_delay_seconds: float = Field(
        default=DEFAULT_MAX_DELAY_SECONDS, ge=0, description="Cap on the un-jittered delay"
    )
    timeout_seconds: float = Field(
        default=DEFAULT_ATTEMPT_TIMEOUT_SECONDS, gt=0, description="Per-attempt timeout"
    )

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetryConfig:
        if self.initial_delay_seconds > self.max_delay_seconds:
            raise ValueError(
                f"initial_delay_seconds ({self.initial_delay_seconds}) must not exceed "
                f"max_delay_seconds ({self.max_delay_seconds})"
            )
        return self

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class QueueConfig(BaseModel):
    """Offline mutation queue storage."""

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Queue store implementation. 'memory' does not survive restarts.",
    )
    db_path: Path = Field(
        default=DEFAULT_QUEUE_DIR / DEFAULT_QUEUE_DB_NAME,
        description="SQLite database file for the sqlite backend",
    )


class ApiConfig(BaseModel):
    """Task-write API endpoint."""

    base_url: str = Field(default=DEFAULT_API_BASE_URL)
    token_env: str = Field(
        default=DEFAULT_API_TOKEN_ENV,
        description="Environment variable holding the bearer token",
    )
    timeout_seconds: float = Field(default=DEFAULT_API_TIMEOUT_SECONDS, gt=0)
    health_path: str = Field(default=DEFAULT_HEALTH_PATH)


class SyncConfig(BaseModel):
    """Connectivity probing that triggers replay."""

    probe_interval_seconds: float = Field(default=DEFAULT_PROBE_INTERVAL_SECONDS, gt=0)


class LogConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "console", "both"] = "console"
    file_path: Path | None = None

    @model_validator(mode="after")
    def _require_file_for_both(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError("logging.file_path is required when logging.format is 'both'")
        return self


class SmeraConfig(BaseModel):
    """Top-level configuration."""

    retry: RetryConfig = Field(default_factory=RetryConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> SmeraConfig:
        """Load configuration from YAML. A missing file yields defaults."""
        path = path.expanduser()
        if not path.exists():
            return cls()
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_string(cls, text: str) -> SmeraConfig:
        return cls.model_validate(yaml.safe_load(text) or {})


__all__ = [
    "ApiConfig",
    "LogConfig",
    "QueueConfig",
    "RetryConfig",
    "SmeraConfig",
    "SyncConfig",
]
