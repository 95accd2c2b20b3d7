"""Offline mutation queue and its stores."""

from smera.core.config import QueueConfig
from smera.queue.base import QueueStore
from smera.queue.memory import InMemoryQueueStore
from smera.queue.offline import OfflineMutationQueue
from smera.queue.sqlite_backend import SQLiteQueueStore


def create_queue_store(config: QueueConfig) -> QueueStore:
    """Build the queue store selected by ``config.backend``."""
    if config.backend == "memory":
        return InMemoryQueueStore()
    return SQLiteQueueStore(config.db_path)


__all__ = [
    "InMemoryQueueStore",
    "OfflineMutationQueue",
    "QueueStore",
    "SQLiteQueueStore",
    "create_queue_store",
]
