"""Rich output formatting for the Smera CLI."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from smera.core.models import QueuedOperation
from smera.sync.replay import ReplayReport

# Command modules print through this console.
console = Console()


OPERATION_COLORS: dict[str, str] = {
    "create_task": "green",
    "update_task": "blue",
    "delete_task": "red",
    "append_update": "magenta",
}


def format_timestamp_ms(timestamp_ms: int | None) -> str:
    """Format epoch milliseconds as a UTC timestamp, or "-" if None."""
    if timestamp_ms is None:
        return "-"
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def create_queue_table(title: str = "Pending Operations") -> Table:
    table = Table(title=title)
    table.add_column("Operation ID", style="cyan", no_wrap=True)
    table.add_column("Type", style="bold")
    table.add_column("Workspace", style="dim", no_wrap=True)
    table.add_column("Enqueued", style="dim")
    table.add_column("Retries", justify="right")
    table.add_column("Last Error", style="red")
    return table


def print_queue(records: Sequence[QueuedOperation], console_instance: Console | None = None) -> None:
    """Print queued operations as a table."""
    out = console_instance or console
    table = create_queue_table()
    for record in records:
        color = OPERATION_COLORS.get(record.operation_type, "white")
        table.add_row(
            record.id,
            f"[{color}]{record.operation_type}[/{color}]",
            record.workspace_id,
            format_timestamp_ms(record.timestamp),
            str(record.retries),
            escape(record.last_error or ""),
        )
    out.print(table)


def queue_to_json(records: Sequence[QueuedOperation]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in records], indent=2)


def print_replay_report(report: ReplayReport, console_instance: Console | None = None) -> None:
    out = console_instance or console
    if report.skipped:
        out.print("[yellow]Replay already in progress, skipped.[/yellow]")
        return
    if report.attempted == 0:
        out.print("[dim]Nothing to replay.[/dim]")
        return

    out.print(
        f"Replayed [bold]{report.attempted}[/bold] operation(s): "
        f"[green]{report.succeeded} succeeded[/green], "
        f"[red]{report.failed} failed[/red]"
    )
    if report.dropped:
        out.print(
            f"[yellow]{report.dropped} operation(s) dropped after repeated failures[/yellow]"
        )


def output_error(
    message: str,
    *,
    hints: list[str] | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print a red error line with optional dim hints."""
    out = console_instance or console
    out.print(f"[red]Error:[/red] {escape(message)}")
    if hints:
        out.print()
        out.print("[dim]Hints:[/dim]")
        for hint in hints:
            out.print(f"  - {hint}")


def flatten_dict(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested dict into dot-notation keys."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            result.update(flatten_dict(value, full_key))
        else:
            result[full_key] = value
    return result
