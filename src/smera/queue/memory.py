"""In-memory queue store.

Keeps records in a dict without any I/O. Useful for tests and for
sessions where durability across restarts is not needed.
"""

from smera.core.models import QueuedOperation
from smera.queue.base import QueueStore


class InMemoryQueueStore(QueueStore):
    """Queue store backed by an insertion-ordered dict."""

    def __init__(self) -> None:
        self.records: dict[str, QueuedOperation] = {}

    async def add(self, record: QueuedOperation) -> None:
        if record.id in self.records:
            raise ValueError(f"Duplicate queued operation id: {record.id}")
        self.records[record.id] = record.model_copy(deep=True)

    async def get(self, operation_id: str) -> QueuedOperation | None:
        record = self.records.get(operation_id)
        return record.model_copy(deep=True) if record else None

    async def put(self, record: QueuedOperation) -> None:
        if record.id not in self.records:
            raise KeyError(record.id)
        self.records[record.id] = record.model_copy(deep=True)

    async def delete(self, operation_id: str) -> bool:
        return self.records.pop(operation_id, None) is not None

    async def list_ordered(self, workspace_id: str | None = None) -> list[QueuedOperation]:
        # sorted() is stable, so equal timestamps keep insertion order
        records = [
            r.model_copy(deep=True)
            for r in self.records.values()
            if workspace_id is None or r.workspace_id == workspace_id
        ]
        return sorted(records, key=lambda r: r.timestamp)

    async def clear(self) -> None:
        self.records.clear()

    async def count(self, workspace_id: str | None = None) -> int:
        if workspace_id is None:
            return len(self.records)
        return sum(1 for r in self.records.values() if r.workspace_id == workspace_id)
