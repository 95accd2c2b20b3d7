"""Smera CLI.

Administration commands for the offline mutation queue, built with Typer.

Package structure:
    cli/
    ├── __init__.py       # App assembly and global options
    ├── helpers.py        # Config and logging state, factories
    ├── output.py         # Rich formatting
    └── commands/
        ├── queue.py      # queue list/count/clear/replay
        └── config_cmd.py # config show/path
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from smera import __version__

from . import helpers as helpers
from .commands import config_app, queue_app
from .helpers import (
    configure_global_logging,
    set_config_path,
    set_log_file,
    set_log_format,
    set_log_level,
)
from .output import console

app = typer.Typer(
    name="smera",
    help="Smera offline sync tooling",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Smera v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file (default: ~/.smera/config.yaml)",
            envvar="SMERA_CONFIG",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="SMERA_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Path for log file output",
            envvar="SMERA_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            help="Log format: json, console, or both",
            envvar="SMERA_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """Smera - inspect and replay offline task writes."""
    set_config_path(config)
    if log_level:
        set_log_level(log_level)
    if log_file:
        set_log_file(log_file)
    if log_format:
        set_log_format(log_format)
    configure_global_logging(console)


app.add_typer(queue_app)
app.add_typer(config_app)


__all__ = ["app", "console", "main"]
