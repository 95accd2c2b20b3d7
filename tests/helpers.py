"""Shared test helpers for Smera tests."""

import random
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from smera.core.models import (
    AppendTaskUpdateOperation,
    DeleteTaskOperation,
    Task,
    TaskUpdateDraft,
    TaskUpdateType,
    UpdateTaskOperation,
)
from smera.utils.time import now_ms


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FixedRandom(random.Random):
    """Random source whose ``uniform`` always returns the same factor."""

    def __init__(self, factor: float) -> None:
        super().__init__()
        self.factor = factor

    def uniform(self, a: float, b: float) -> float:
        return self.factor


def scripted_operation(outcomes: Sequence[Any]) -> tuple[Callable[[], Awaitable[Any]], list[int]]:
    """Build an operation that raises or returns ``outcomes`` in turn.

    Exceptions in ``outcomes`` are raised; anything else is returned.
    The second element counts calls.
    """
    calls = [0]

    async def operation() -> Any:
        index = calls[0]
        calls[0] += 1
        outcome = outcomes[min(index, len(outcomes) - 1)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    return operation, calls


def make_task(task_id: str, workspace_id: str = "S1", title: str = "Write report") -> Task:
    now = now_ms()
    return Task(id=task_id, workspace_id=workspace_id, title=title, created_at=now, updated_at=now)


def delete_op(task_id: str, workspace_id: str = "S1") -> DeleteTaskOperation:
    return DeleteTaskOperation(workspace_id=workspace_id, task_id=task_id)


def update_op(task_id: str, workspace_id: str = "S1", **changes: Any) -> UpdateTaskOperation:
    return UpdateTaskOperation(
        workspace_id=workspace_id,
        task_id=task_id,
        changes=changes or {"title": "Renamed"},
    )


def note_op(task_id: str, content: str = "Called the client", workspace_id: str = "S1") -> AppendTaskUpdateOperation:
    return AppendTaskUpdateOperation(
        workspace_id=workspace_id,
        task_id=task_id,
        update=TaskUpdateDraft(type=TaskUpdateType.NOTE, content=content),
    )
