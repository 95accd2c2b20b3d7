"""Domain models: tasks, timeline entries and queued offline operations.

Tasks live inside a workspace (a "Space"). Writes that cannot reach the
task API are recorded as one of four ``OfflineOperation`` variants and
wrapped in a ``QueuedOperation`` until they are replayed.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from smera.utils.time import now_ms


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskUpdateType(str, Enum):
    """Kinds of entries on a task's activity timeline."""

    STATUS_CHANGE = "status_change"
    NOTE = "note"
    FIELD_UPDATE = "field_update"


# =============================================================================
# Tasks
# =============================================================================


class TaskUpdateDraft(BaseModel):
    """A timeline entry before the API has assigned it an id."""

    type: TaskUpdateType
    content: str
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")
    field: str | None = Field(default=None, description="Changed field, e.g. 'priority'")
    old_value: str | None = None
    new_value: str | None = None


class TaskUpdate(TaskUpdateDraft):
    id: str


class TaskDraft(BaseModel):
    """Fields a client supplies when creating a task."""

    title: str = Field(min_length=1)
    description: str | None = None
    due_date: str | None = Field(default=None, description="ISO date, e.g. 2026-10-20")
    due_time: str | None = Field(default=None, description="e.g. 14:00")
    priority: TaskPriority | None = None
    status: TaskStatus = TaskStatus.TODO
    suggested_improvements: list[str] = Field(default_factory=list)


class Task(TaskDraft):
    id: str
    workspace_id: str
    created_at: int
    updated_at: int
    updates: list[TaskUpdate] = Field(default_factory=list)

    @classmethod
    def provisional(cls, workspace_id: str, draft: TaskDraft, temp_id: str) -> Task:
        """Build the optimistic task shown while its creation is queued."""
        now = now_ms()
        return cls(
            **draft.model_dump(),
            id=temp_id,
            workspace_id=workspace_id,
            created_at=now,
            updated_at=now,
        )


class TaskPatch(BaseModel):
    """Partial task update. Only explicitly set fields are sent."""

    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    due_time: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    suggested_improvements: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


# =============================================================================
# Offline operations
# =============================================================================


class CreateTaskOperation(BaseModel):
    type: Literal["create_task"] = "create_task"
    workspace_id: str
    task: TaskDraft
    temp_id: str = Field(description="Id of the optimistic task shown to the user")


class UpdateTaskOperation(BaseModel):
    type: Literal["update_task"] = "update_task"
    workspace_id: str
    task_id: str
    changes: dict[str, Any] = Field(description="Only the fields the user changed")

    @classmethod
    def from_patch(cls, workspace_id: str, task_id: str, patch: TaskPatch) -> UpdateTaskOperation:
        return cls(workspace_id=workspace_id, task_id=task_id, changes=patch.changes())

    def to_patch(self) -> TaskPatch:
        return TaskPatch.model_validate(self.changes)


class DeleteTaskOperation(BaseModel):
    type: Literal["delete_task"] = "delete_task"
    workspace_id: str
    task_id: str


class AppendTaskUpdateOperation(BaseModel):
    type: Literal["append_update"] = "append_update"
    workspace_id: str
    task_id: str
    update: TaskUpdateDraft


OfflineOperation = Annotated[
    CreateTaskOperation | UpdateTaskOperation | DeleteTaskOperation | AppendTaskUpdateOperation,
    Field(discriminator="type"),
]


def new_operation_id(timestamp: int | None = None) -> str:
    """Generate a unique queued-operation id, e.g. ``op_1760000000000_3f2a9c1b0``."""
    return f"op_{timestamp if timestamp is not None else now_ms()}_{uuid.uuid4().hex[:9]}"


def new_temp_task_id() -> str:
    return f"temp_{now_ms()}_{uuid.uuid4().hex[:9]}"


class QueuedOperation(BaseModel):
    """A pending write persisted by the offline mutation queue."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    operation: OfflineOperation
    timestamp: int = Field(description="Enqueue time, epoch milliseconds")
    retries: int = Field(default=0, ge=0)
    last_error: str | None = None

    @property
    def workspace_id(self) -> str:
        return self.operation.workspace_id

    @property
    def operation_type(self) -> str:
        return self.operation.type


__all__ = [
    "AppendTaskUpdateOperation",
    "CreateTaskOperation",
    "DeleteTaskOperation",
    "OfflineOperation",
    "QueuedOperation",
    "Task",
    "TaskDraft",
    "TaskPatch",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "TaskUpdateDraft",
    "TaskUpdateType",
    "UpdateTaskOperation",
    "new_operation_id",
    "new_temp_task_id",
]
