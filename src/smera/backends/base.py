"""Abstract base for task-write backends."""

from abc import ABC, abstractmethod

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
)


class TaskWriter(ABC):
    """Abstract base class for the task-write API.

    Implementations raise ``BackendError`` subclasses, already tagged with
    an ``ErrorKind``, when a write cannot be completed.
    """

    @abstractmethod
    async def create_task(self, workspace_id: str, draft: TaskDraft) -> Task:
        """Create a task in a workspace.

        Returns:
            The stored task with its server-assigned id.
        """
        ...

    @abstractmethod
    async def update_task(self, workspace_id: str, task_id: str, patch: TaskPatch) -> Task:
        """Apply the fields set on ``patch`` to an existing task."""
        ...

    @abstractmethod
    async def delete_task(self, workspace_id: str, task_id: str) -> None:
        ...

    @abstractmethod
    async def add_task_update(
        self, workspace_id: str, task_id: str, update: TaskUpdateDraft
    ) -> TaskUpdate:
        """Append an entry to a task's activity timeline."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check whether the API is reachable.

        Used by the connectivity monitor to detect reconnection.

        Returns:
            True if the API answered, False otherwise
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""
        ...

    async def close(self) -> None:
        """Release any resources held by the writer."""

    async def apply(self, operation: OfflineOperation) -> None:
        """Perform the write a queued operation describes."""
        if isinstance(operation, CreateTaskOperation):
            await self.create_task(operation.workspace_id, operation.task)
        elif isinstance(operation, UpdateTaskOperation):
            await self.update_task(
                operation.workspace_id, operation.task_id, operation.to_patch()
            )
        elif isinstance(operation, DeleteTaskOperation):
            await self.delete_task(operation.workspace_id, operation.task_id)
        elif isinstance(operation, AppendTaskUpdateOperation):
            await self.add_task_update(
                operation.workspace_id, operation.task_id, operation.update
            )
        else:
            raise TypeError(f"Unsupported operation: {type(operation).__name__}")
