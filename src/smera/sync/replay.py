"""Replay of queued offline operations.

Drains the offline mutation queue through a ``TaskWriter`` once the API
is reachable again. Records are replayed one at a time in queue order:

- a successful write removes the record;
- a failed write is counted with ``record_failure`` and replay moves on
  to the next record, so one bad record never blocks later ones;
- a record failing for the third time is dropped by the queue.

Only one replay runs at a time per driver. A call made while a replay is
in flight returns at once with ``ReplayReport(skipped=True)``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from smera.backends.base import TaskWriter
from smera.core.errors import OperationNotFoundError
from smera.core.logging import SyncContext, get_logger, with_context
from smera.queue.offline import OfflineMutationQueue

_logger = get_logger("sync.replay")


@dataclass
class ReplayReport:
    """Outcome of one replay run.

    ``failed`` counts every failed write, including those that caused
    the record to be dropped; ``dropped`` counts only the latter.
    """

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    dropped: int = 0
    skipped: bool = False

    @property
    def remaining_failures(self) -> int:
        return self.failed - self.dropped


class ReplayDriver:
    """Replays queued operations against a task writer.

    Example usage:
        driver = ReplayDriver(queue, writer)
        monitor.on_reconnect(driver.replay)
    """

    def __init__(self, queue: OfflineMutationQueue, writer: TaskWriter) -> None:
        self.queue = queue
        self.writer = writer
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def replay(self, workspace_id: str | None = None) -> ReplayReport:
        """Replay pending operations, optionally for one workspace.

        Raises:
            StoreUnavailableError: If the queue store fails mid-run.
        """
        if self._lock.locked():
            _logger.info("replay_skipped_in_progress", workspace_id=workspace_id)
            return ReplayReport(skipped=True)

        async with self._lock:
            ctx = SyncContext(workspace_id=workspace_id, component="sync.replay")
            with with_context(ctx):
                return await self._replay(workspace_id)

    async def _replay(self, workspace_id: str | None) -> ReplayReport:
        if workspace_id is None:
            records = await self.queue.list_pending()
        else:
            records = await self.queue.list_pending_for_workspace(workspace_id)

        report = ReplayReport()
        if not records:
            _logger.debug("replay_nothing_pending")
            return report

        _logger.info("replay_started", pending=len(records))
        for record in records:
            report.attempted += 1
            log = _logger.bind(
                operation_id=record.id,
                operation_type=record.operation_type,
                op_workspace_id=record.workspace_id,
            )
            try:
                await self.writer.apply(record.operation)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                report.failed += 1
                error_text = str(exc) or type(exc).__name__
                log.warning("replay_operation_failed", error=error_text)
                try:
                    updated = await self.queue.record_failure(record.id, error_text)
                except OperationNotFoundError:
                    log.warning("replay_operation_vanished")
                    continue
                if updated is None:
                    report.dropped += 1
                continue

            await self.queue.remove(record.id)
            report.succeeded += 1
            log.debug("replay_operation_succeeded")

        _logger.info(
            "replay_completed",
            attempted=report.attempted,
            succeeded=report.succeeded,
            failed=report.failed,
            dropped=report.dropped,
        )
        return report
