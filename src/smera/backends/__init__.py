"""Task-write backends."""

from smera.backends.base import TaskWriter
from smera.backends.http import HttpTaskWriter
from smera.backends.memory import InMemoryTaskWriter
from smera.core.config import ApiConfig


def create_task_writer(config: ApiConfig) -> TaskWriter:
    """Build the HTTP task writer for ``config``."""
    return HttpTaskWriter.from_config(config)


__all__ = ["HttpTaskWriter", "InMemoryTaskWriter", "TaskWriter", "create_task_writer"]
