"""Offline mutation queue.

Records task writes that could not reach the API and hands them back in
submission order for replay. Repeated replay failures are counted per
record; a record that fails ``MAX_QUEUE_RETRIES`` times is dropped.

Example usage:
    queue = OfflineMutationQueue(SQLiteQueueStore("~/.smera/offline_queue.db"))
    op_id = await queue.enqueue(DeleteTaskOperation(workspace_id="S1", task_id="t1"))
    for record in await queue.list_pending_for_workspace("S1"):
        ...
"""

from __future__ import annotations

import asyncio

from smera.core.constants import MAX_QUEUE_RETRIES, TRUNCATE_ERROR_MESSAGE_CHARS
from smera.core.errors import OperationNotFoundError
from smera.core.logging import get_logger
from smera.core.models import OfflineOperation, QueuedOperation, new_operation_id
from smera.queue.base import QueueStore
from smera.utils.time import now_ms

_logger = get_logger("queue")


class OfflineMutationQueue:
    """Ordered queue of pending writes on top of a ``QueueStore``.

    The queue owns its records between enqueue and resolution: a record
    leaves the store either through ``remove`` after a successful replay
    or through ``record_failure`` once the retry ceiling is reached.
    """

    def __init__(self, store: QueueStore, max_retries: int = MAX_QUEUE_RETRIES) -> None:
        """Initialize the queue.

        Args:
            store: Persistence for queued records.
            max_retries: Failed replays after which a record is dropped.
        """
        self.store = store
        self.max_retries = max_retries
        self._lock = asyncio.Lock()
        self._last_timestamp = 0

    async def enqueue(self, operation: OfflineOperation) -> str:
        """Persist a new pending operation.

        Returns:
            The generated operation id.

        Raises:
            StoreUnavailableError: If the store cannot be written.
        """
        async with self._lock:
            # Strictly increasing timestamps keep same-millisecond enqueues ordered
            timestamp = max(now_ms(), self._last_timestamp + 1)
            self._last_timestamp = timestamp
            record = QueuedOperation(
                id=new_operation_id(timestamp),
                operation=operation,
                timestamp=timestamp,
            )
            await self.store.add(record)

        _logger.info(
            "queue_operation_enqueued",
            operation_id=record.id,
            operation_type=record.operation_type,
            workspace_id=record.workspace_id,
        )
        return record.id

    async def list_pending(self) -> list[QueuedOperation]:
        """All pending records, oldest first."""
        return await self.store.list_ordered()

    async def list_pending_for_workspace(self, workspace_id: str) -> list[QueuedOperation]:
        """Pending records of one workspace, oldest first."""
        return await self.store.list_ordered(workspace_id)

    async def get(self, operation_id: str) -> QueuedOperation | None:
        return await self.store.get(operation_id)

    async def remove(self, operation_id: str) -> bool:
        """Delete a record after it was replayed successfully.

        Returns:
            True if the record existed.
        """
        async with self._lock:
            removed = await self.store.delete(operation_id)
        if removed:
            _logger.debug("queue_operation_removed", operation_id=operation_id)
        else:
            _logger.debug("queue_operation_remove_missing", operation_id=operation_id)
        return removed

    async def record_failure(self, operation_id: str, error_text: str) -> QueuedOperation | None:
        """Count a failed replay of ``operation_id``.

        The retry counter is incremented and the error stored. When the
        counter reaches ``max_retries`` the record is deleted instead.

        Returns:
            The updated record, or None if it was dropped.

        Raises:
            OperationNotFoundError: If no record has this id.
        """
        error_text = error_text[:TRUNCATE_ERROR_MESSAGE_CHARS]
        async with self._lock:
            record = await self.store.get(operation_id)
            if record is None:
                raise OperationNotFoundError(operation_id)

            retries = record.retries + 1
            if retries >= self.max_retries:
                await self.store.delete(operation_id)
                _logger.warning(
                    "queue_operation_dropped",
                    operation_id=operation_id,
                    operation_type=record.operation_type,
                    workspace_id=record.workspace_id,
                    retries=retries,
                    error=error_text,
                )
                return None

            record.retries = retries
            record.last_error = error_text
            await self.store.put(record)

        _logger.info(
            "queue_operation_failed",
            operation_id=operation_id,
            retries=retries,
            max_retries=self.max_retries,
            error=error_text,
        )
        return record

    async def clear_all(self) -> None:
        async with self._lock:
            await self.store.clear()
        _logger.info("queue_cleared")

    async def count(self, workspace_id: str | None = None) -> int:
        """Number of pending records, optionally for one workspace."""
        return await self.store.count(workspace_id)


__all__ = ["OfflineMutationQueue"]
