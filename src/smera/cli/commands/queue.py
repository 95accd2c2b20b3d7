"""Offline queue administration commands.

Subcommands:
- `smera queue list`    List pending operations in replay order
- `smera queue count`   Number of pending operations
- `smera queue clear`   Delete every pending operation
- `smera queue replay`  Replay pending operations against the task API
"""

from __future__ import annotations

import asyncio
import json

import typer

from smera.backends import create_task_writer
from smera.core.errors import StoreUnavailableError
from smera.core.models import QueuedOperation
from smera.sync.replay import ReplayDriver, ReplayReport

from ..helpers import ErrorMessages, get_config, open_queue
from ..output import console, output_error, print_queue, print_replay_report, queue_to_json

queue_app = typer.Typer(
    name="queue",
    help="Inspect and replay the offline mutation queue.",
    invoke_without_command=True,
)

_STORE_HINTS = ["Check queue.db_path in the config file and its directory permissions."]
_API_HINTS = [
    "Check api.base_url in the config file and that the task API is running.",
    "Pending operations were left untouched.",
]


@queue_app.callback(invoke_without_command=True)
def queue_callback(ctx: typer.Context) -> None:
    """Inspect and replay the offline mutation queue."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


def _store_failure(e: StoreUnavailableError) -> typer.Exit:
    output_error(f"{ErrorMessages.STORE_UNAVAILABLE}: {e}", hints=_STORE_HINTS)
    return typer.Exit(1)


@queue_app.command("list")
def list_pending(
    workspace: str | None = typer.Option(
        None, "--workspace", "-w", help="Only show operations for this workspace"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List pending operations in the order they will be replayed.

    Examples:
        smera queue list
        smera queue list --workspace S1 --json
    """
    queue = open_queue(get_config(console))

    async def _list() -> list[QueuedOperation]:
        if workspace is None:
            return await queue.list_pending()
        return await queue.list_pending_for_workspace(workspace)

    try:
        records = asyncio.run(_list())
    except StoreUnavailableError as e:
        raise _store_failure(e) from None

    if json_output:
        typer.echo(queue_to_json(records))
        return
    if not records:
        console.print("[dim]No pending operations.[/dim]")
        return
    print_queue(records)


@queue_app.command()
def count(
    workspace: str | None = typer.Option(
        None, "--workspace", "-w", help="Only count operations for this workspace"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the number of pending operations."""
    queue = open_queue(get_config(console))
    try:
        pending = asyncio.run(queue.count(workspace))
    except StoreUnavailableError as e:
        raise _store_failure(e) from None

    if json_output:
        typer.echo(json.dumps({"workspace": workspace, "pending": pending}))
    else:
        typer.echo(str(pending))


@queue_app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every pending operation. Queued writes are lost."""
    queue = open_queue(get_config(console))
    if not yes:
        typer.confirm("Discard all pending operations?", abort=True)
    try:
        asyncio.run(queue.clear_all())
    except StoreUnavailableError as e:
        raise _store_failure(e) from None
    console.print("[green]Offline queue cleared.[/green]")


@queue_app.command()
def replay(
    workspace: str | None = typer.Option(
        None, "--workspace", "-w", help="Only replay operations for this workspace"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Replay pending operations against the task API.

    Nothing is replayed unless the API health check passes. Successful
    operations are removed. Failed ones stay queued with their retry
    count increased, and are dropped after the third failure.

    Examples:
        smera queue replay
        smera queue replay --workspace S1
    """
    config = get_config(console)
    queue = open_queue(config)
    writer = create_task_writer(config.api)

    async def _replay() -> ReplayReport | None:
        try:
            if not await writer.health_check():
                return None
            return await ReplayDriver(queue, writer).replay(workspace)
        finally:
            await writer.close()

    try:
        report = asyncio.run(_replay())
    except StoreUnavailableError as e:
        raise _store_failure(e) from None

    if report is None:
        output_error(
            f"{ErrorMessages.API_UNREACHABLE}: {config.api.base_url}",
            hints=_API_HINTS,
        )
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps({
            "attempted": report.attempted,
            "succeeded": report.succeeded,
            "failed": report.failed,
            "dropped": report.dropped,
            "skipped": report.skipped,
        }))
        return
    print_replay_report(report)
