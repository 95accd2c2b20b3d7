"""In-memory task writer for testing and offline demos.

Keeps tasks in a dict and records every call, with switches to simulate
an unreachable API or failing writes.
"""

import uuid

from smera.backends.base import TaskWriter
from smera.core.errors import BackendConnectionError, BackendError, BackendResponseError
from smera.core.models import Task, TaskDraft, TaskPatch, TaskUpdate, TaskUpdateDraft
from smera.utils.time import now_ms


class InMemoryTaskWriter(TaskWriter):
    """Task writer storing tasks in memory.

    Attributes:
        tasks: Stored tasks keyed by ``(workspace_id, task_id)``.
        calls: ``(method, workspace_id, task_id)`` for every attempted write.
        online: When False every call raises ``BackendConnectionError``.
        fail_task_ids: Writes touching these task ids fail with HTTP 500.
    """

    def __init__(self) -> None:
        self.tasks: dict[tuple[str, str], Task] = {}
        self.calls: list[tuple[str, str, str | None]] = []
        self.online = True
        self.fail_task_ids: set[str] = set()
        self._fail_next: BackendError | None = None

    @property
    def name(self) -> str:
        return "memory"

    def seed(self, task: Task) -> None:
        self.tasks[(task.workspace_id, task.id)] = task

    def set_fail_next(self, error: BackendError | None) -> None:
        """Make the next write raise ``error``."""
        self._fail_next = error

    def _check(self, method: str, workspace_id: str, task_id: str | None) -> None:
        self.calls.append((method, workspace_id, task_id))
        if not self.online:
            raise BackendConnectionError("network unreachable")
        if self._fail_next is not None:
            error, self._fail_next = self._fail_next, None
            raise error
        if task_id is not None and task_id in self.fail_task_ids:
            raise BackendResponseError(500, "internal server error")

    def _existing(self, workspace_id: str, task_id: str) -> Task:
        task = self.tasks.get((workspace_id, task_id))
        if task is None:
            raise BackendResponseError(404, f"task {task_id} not found")
        return task

    async def create_task(self, workspace_id: str, draft: TaskDraft) -> Task:
        self._check("create_task", workspace_id, None)
        now = now_ms()
        task = Task(
            **draft.model_dump(),
            id=uuid.uuid4().hex,
            workspace_id=workspace_id,
            created_at=now,
            updated_at=now,
        )
        self.seed(task)
        return task

    async def update_task(self, workspace_id: str, task_id: str, patch: TaskPatch) -> Task:
        self._check("update_task", workspace_id, task_id)
        task = self._existing(workspace_id, task_id)
        updated = task.model_copy(update={**patch.model_dump(exclude_unset=True), "updated_at": now_ms()})
        self.seed(updated)
        return updated

    async def delete_task(self, workspace_id: str, task_id: str) -> None:
        self._check("delete_task", workspace_id, task_id)
        self._existing(workspace_id, task_id)
        del self.tasks[(workspace_id, task_id)]

    async def add_task_update(
        self, workspace_id: str, task_id: str, update: TaskUpdateDraft
    ) -> TaskUpdate:
        self._check("add_task_update", workspace_id, task_id)
        task = self._existing(workspace_id, task_id)
        entry = TaskUpdate(**update.model_dump(), id=uuid.uuid4().hex)
        task.updates.append(entry)
        return entry

    async def health_check(self) -> bool:
        return self.online
