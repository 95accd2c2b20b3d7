"""Abstract base for offline queue stores."""

from abc import ABC, abstractmethod

from smera.core.models import QueuedOperation


class QueueStore(ABC):
    """Durable, ordered storage for queued operations.

    Each call is individually atomic. Records are returned in ascending
    ``timestamp`` order, ties broken by insertion order. Implementations
    raise ``StoreUnavailableError`` when the underlying storage fails.
    """

    async def open(self) -> None:
        """Prepare the store (create schema, connect). Idempotent."""

    async def close(self) -> None:
        """Release any resources held by the store."""

    @abstractmethod
    async def add(self, record: QueuedOperation) -> None:
        """Insert a new record.

        Raises:
            ValueError: If a record with the same id already exists.
        """
        ...

    @abstractmethod
    async def get(self, operation_id: str) -> QueuedOperation | None:
        """Fetch a record by id, or None if absent."""
        ...

    @abstractmethod
    async def put(self, record: QueuedOperation) -> None:
        """Overwrite an existing record, keeping its queue position."""
        ...

    @abstractmethod
    async def delete(self, operation_id: str) -> bool:
        """Delete a record.

        Returns:
            True if deleted, False if not found
        """
        ...

    @abstractmethod
    async def list_ordered(self, workspace_id: str | None = None) -> list[QueuedOperation]:
        """List records in queue order, optionally for one workspace."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every record."""
        ...

    @abstractmethod
    async def count(self, workspace_id: str | None = None) -> int:
        """Number of stored records, optionally for one workspace."""
        ...
