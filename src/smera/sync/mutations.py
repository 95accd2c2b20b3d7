"""Write-or-enqueue task mutations.

``TaskMutations`` is the write path used by the application: each write
goes straight to the ``TaskWriter`` while the API is reachable. When the
connectivity monitor reports offline, or a write fails with a network
error, the write is recorded in the offline mutation queue instead and
an optimistic result is returned. Any other failure propagates.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from smera.backends.base import TaskWriter
from smera.core.errors import BackendError, ErrorKind
from smera.core.logging import get_logger
from smera.core.models import (
    AppendTaskUpdateOperation,
    CreateTaskOperation,
    DeleteTaskOperation,
    OfflineOperation,
    Task,
    TaskDraft,
    TaskPatch,
    TaskUpdate,
    TaskUpdateDraft,
    UpdateTaskOperation,
    new_temp_task_id,
)
from smera.queue.offline import OfflineMutationQueue
from smera.sync.connectivity import ConnectivityMonitor

_logger = get_logger("sync.mutations")


@dataclass
class MutationResult:
    """Outcome of a task write.

    Attributes:
        queued: True if the write was stored for later replay.
        operation_id: Queue id when ``queued``.
        task: The written task, or the optimistic task for a queued create.
        update: The stored timeline entry for a direct ``add_task_update``.
    """

    queued: bool = False
    operation_id: str | None = None
    task: Task | None = None
    update: TaskUpdate | None = None


class TaskMutations:
    """Task writes that fall back to the offline queue.

    Example usage:
        mutations = TaskMutations(writer, queue, monitor)
        result = await mutations.create_task("space-1", TaskDraft(title="Call Ana"))
        if result.queued:
            print(f"{await mutations.pending_count()} writes pending")
    """

    def __init__(
        self,
        writer: TaskWriter,
        queue: OfflineMutationQueue,
        monitor: ConnectivityMonitor | None = None,
    ) -> None:
        self.writer = writer
        self.queue = queue
        self.monitor = monitor

    async def create_task(self, workspace_id: str, draft: TaskDraft) -> MutationResult:
        temp_id = new_temp_task_id()
        operation = CreateTaskOperation(workspace_id=workspace_id, task=draft, temp_id=temp_id)

        async def write() -> MutationResult:
            return MutationResult(task=await self.writer.create_task(workspace_id, draft))

        result = await self._submit(operation, write)
        if result.queued:
            result.task = Task.provisional(workspace_id, draft, temp_id)
        return result

    async def update_task(self, workspace_id: str, task_id: str, patch: TaskPatch) -> MutationResult:
        operation = UpdateTaskOperation.from_patch(workspace_id, task_id, patch)

        async def write() -> MutationResult:
            return MutationResult(task=await self.writer.update_task(workspace_id, task_id, patch))

        return await self._submit(operation, write)

    async def delete_task(self, workspace_id: str, task_id: str) -> MutationResult:
        operation = DeleteTaskOperation(workspace_id=workspace_id, task_id=task_id)

        async def write() -> MutationResult:
            await self.writer.delete_task(workspace_id, task_id)
            return MutationResult()

        return await self._submit(operation, write)

    async def add_task_update(
        self, workspace_id: str, task_id: str, update: TaskUpdateDraft
    ) -> MutationResult:
        operation = AppendTaskUpdateOperation(
            workspace_id=workspace_id, task_id=task_id, update=update
        )

        async def write() -> MutationResult:
            entry = await self.writer.add_task_update(workspace_id, task_id, update)
            return MutationResult(update=entry)

        return await self._submit(operation, write)

    async def pending_count(self, workspace_id: str | None = None) -> int:
        """Number of queued writes, for "pending sync" badges."""
        return await self.queue.count(workspace_id)

    async def _submit(
        self,
        operation: OfflineOperation,
        write: Callable[[], Awaitable[MutationResult]],
    ) -> MutationResult:
        if self.monitor is not None and not self.monitor.is_online:
            return await self._enqueue(operation, reason="offline")

        try:
            return await write()
        except BackendError as e:
            if e.kind is not ErrorKind.NETWORK:
                raise
            if self.monitor is not None:
                await self.monitor.set_online(False)
            return await self._enqueue(operation, reason=str(e))

    async def _enqueue(self, operation: OfflineOperation, reason: str) -> MutationResult:
        operation_id = await self.queue.enqueue(operation)
        _logger.info(
            "mutation_queued",
            operation_id=operation_id,
            operation_type=operation.type,
            workspace_id=operation.workspace_id,
            reason=reason,
        )
        return MutationResult(queued=True, operation_id=operation_id)
