"""Shared utilities for Smera CLI commands.

Holds the state set by global options (config path, logging overrides)
and the factories commands use to reach the queue and the task API.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from pydantic import ValidationError
from rich.console import Console

from smera.core.config import SmeraConfig
from smera.core.logging import configure_logging, get_logger
from smera.queue import OfflineMutationQueue, create_queue_store

_logger = get_logger("cli")

DEFAULT_CONFIG_FILE = Path("~/.smera/config.yaml")


class ErrorMessages:
    """User-facing CLI error strings."""

    CONFIG_LOAD_ERROR = "Error loading config"
    STORE_UNAVAILABLE = "Offline queue store unavailable"
    API_UNREACHABLE = "Task API unreachable"


# =============================================================================
# Config file
# =============================================================================


@dataclass
class CliState:
    """Config selected by global options, loaded once per invocation."""

    config_path: Path | None = None
    config: SmeraConfig | None = None


_state = CliState()


def set_config_path(path: Path | None) -> None:
    _state.config_path = path
    _state.config = None


def get_config_path() -> Path:
    return (_state.config_path or DEFAULT_CONFIG_FILE).expanduser()


def get_config(console: Console) -> SmeraConfig:
    """Load the selected config file, exiting with an error if invalid.

    A missing file yields the default configuration.
    """
    if _state.config is None:
        path = get_config_path()
        try:
            _state.config = SmeraConfig.from_yaml(path)
        except (ValidationError, ValueError, OSError) as e:
            console.print(f"[red]{ErrorMessages.CONFIG_LOAD_ERROR}:[/red] {path}: {e}")
            raise typer.Exit(1) from None
        _logger.debug("config_loaded", path=str(path), exists=path.exists())
    return _state.config


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging overrides from global options.

    Unset fields fall back to the ``logging`` section of the config file.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    file: Path | None = None
    format: Literal["json", "console", "both"] | None = None
    configured: bool = False


_log_config = CliLoggingConfig()


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]


def set_log_file(path: Path | None) -> None:
    _log_config.file = path


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]


def configure_global_logging(console: Console) -> None:
    """Configure logging from global options and the config file.

    Only configures once per session.

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _log_config.configured:
        return

    file_settings = get_config(console).logging
    level = _log_config.level or file_settings.level
    fmt = _log_config.format or file_settings.format
    file_path = _log_config.file or file_settings.file_path

    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        console.print(f"[red]Logging configuration error:[/red] unknown level {level!r}")
        raise typer.Exit(1)
    if fmt not in ("json", "console", "both"):
        console.print(f"[red]Logging configuration error:[/red] unknown format {fmt!r}")
        raise typer.Exit(1)

    try:
        configure_logging(level=level, format=fmt, file_path=file_path)
        _log_config.configured = True
    except ValueError as e:
        # e.g. format="both" without a file path
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_cli_state() -> None:
    """Reset global option state (used by tests)."""
    global _log_config, _state
    _log_config = CliLoggingConfig()
    _state = CliState()


# =============================================================================
# Factories
# =============================================================================


def open_queue(config: SmeraConfig) -> OfflineMutationQueue:
    """Offline mutation queue backed by the configured store."""
    return OfflineMutationQueue(create_queue_store(config.queue))


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "CliLoggingConfig",
    "ErrorMessages",
    "configure_global_logging",
    "get_config",
    "get_config_path",
    "open_queue",
    "reset_cli_state",
    "set_config_path",
    "set_log_file",
    "set_log_format",
    "set_log_level",
]
