"""Configuration commands for the Smera CLI.

Subcommands:
- `smera config show`  Display the effective configuration as a table
- `smera config path`  Show the config file location
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml
from rich.table import Table

from ..helpers import get_config, get_config_path
from ..output import console, flatten_dict

config_app = typer.Typer(
    name="config",
    help="Show Smera configuration.",
    invoke_without_command=True,
)


def _load_file_data(path: Path) -> dict[str, Any]:
    """Raw YAML mapping from the config file, empty if missing."""
    if path.exists():
        with open(path) as f:
            return yaml.safe_load(f) or {}
    return {}


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    """Show Smera configuration."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


@config_app.command()
def show() -> None:
    """Display the effective configuration.

    Each key is marked "file" when set in the config file and "default"
    otherwise.

    Examples:
        smera config show
        smera --config ./smera.yaml config show
    """
    path = get_config_path()
    effective = get_config(console)
    file_data = flatten_dict(_load_file_data(path))

    source_label = f"[dim]{path}[/dim]" if path.exists() else "[dim](defaults)[/dim]"
    console.print(f"\nSmera configuration: {source_label}\n")

    table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("Key", style="white", min_width=30)
    table.add_column("Value", style="green")
    table.add_column("Source", style="dim")

    for key, value in flatten_dict(effective.model_dump(mode="json")).items():
        source = "file" if key in file_data else "[dim]default[/dim]"
        table.add_row(key, str(value), source)

    console.print(table)


@config_app.command()
def path() -> None:
    """Show the config file location and whether it exists."""
    config_path = get_config_path()
    status = "[green]exists[/green]" if config_path.exists() else "[yellow]not found[/yellow]"
    console.print(f"{config_path} ({status})")
