"""Structured logging for Smera.

Wraps structlog with Smera-specific context (workspace_id, run_id,
component) and supports console output, JSON output, or both with a
rotating log file.

Example usage:
    from smera.core.logging import configure_logging, get_logger, with_context

    configure_logging(level="DEBUG", format="console")

    logger = get_logger("queue")
    logger.info("operation_enqueued", operation_id="op_1")

    ctx = SyncContext(workspace_id="space-1")
    with with_context(ctx):
        logger.info("replay_started")  # includes workspace_id, run_id
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field names whose values never reach a log sink
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "bearer",
})

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console", "both"]


@dataclass(frozen=True)
class SyncContext:
    """Immutable correlation context for a sync or replay run.

    Attributes:
        workspace_id: Workspace being synced, None for an all-workspace run.
        run_id: Unique id of this run.
        component: Component that opened the context.
    """

    workspace_id: str | None = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    component: str = "unknown"

    def with_workspace(self, workspace_id: str) -> SyncContext:
        return replace(self, workspace_id=workspace_id)

    def with_component(self, component: str) -> SyncContext:
        return replace(self, component=component)

    def to_dict(self) -> dict[str, Any]:
        """Context fields for a log entry, omitting unset ones."""
        result: dict[str, Any] = {"run_id": self.run_id, "component": self.component}
        if self.workspace_id is not None:
            result["workspace_id"] = self.workspace_id
        return result


_current_context: ContextVar[SyncContext | None] = ContextVar(
    "smera_context", default=None
)


def get_current_context() -> SyncContext | None:
    return _current_context.get()


@contextmanager
def with_context(ctx: SyncContext) -> Iterator[SyncContext]:
    """Set ``ctx`` as the current SyncContext for the duration of a block."""
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    if any(pattern in key_lower for pattern in SENSITIVE_PATTERNS):
        return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges the current SyncContext.

    Explicitly bound keys win over context keys.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class SmeraLogger:
    """Component-bound wrapper around a structlog logger.

    The structlog logger is fetched on every call, so loggers created at
    import time still honour a later ``configure_logging()``.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> SmeraLogger:
        """Return a new logger with additional bound context."""
        new_logger = SmeraLogger.__new__(SmeraLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._get_logger().exception(event, **kw)


def _build_processors(renderer: Processor, include_timestamps: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
        _add_context,
    ]
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure Smera structured logging.

    Call once at startup, before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable stderr output, "json" for
            structured output (to ``file_path`` or stdout), "both" for
            console on stderr and JSON to ``file_path``.
        file_path: Log file path. Required when format="both".
        max_file_size_mb: Size at which the log file rotates.
        backup_count: Number of rotated files kept.
        include_timestamps: Whether entries carry ISO8601 UTC timestamps.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    if format in ("json", "both"):
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    file_path,
                    maxBytes=max_file_size_mb * 1024 * 1024,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            )
        else:
            handlers.append(logging.StreamHandler(sys.stdout))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    # cache_logger_on_first_use=False keeps module-level loggers in sync
    # with reconfiguration.
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> SmeraLogger:
    """Get a Smera logger bound to ``component``."""
    return SmeraLogger(component, **initial_context)


__all__ = [
    "SENSITIVE_PATTERNS",
    "LogFormat",
    "LogLevel",
    "SmeraLogger",
    "SyncContext",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
