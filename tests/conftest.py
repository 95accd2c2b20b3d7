"""Pytest fixtures for Smera tests."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from smera.backends.memory import InMemoryTaskWriter
from smera.queue.memory import InMemoryQueueStore
from smera.queue.offline import OfflineMutationQueue
from smera.queue.sqlite_backend import SQLiteQueueStore


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging and CLI option state before and after each test."""
    from smera.cli import helpers as cli_helpers

    cli_helpers.reset_cli_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    cli_helpers.reset_cli_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def memory_store() -> InMemoryQueueStore:
    return InMemoryQueueStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SQLiteQueueStore:
    """SQLite queue store in a temp directory."""
    return SQLiteQueueStore(tmp_path / "queue" / "offline_queue.db")


@pytest.fixture
def queue(memory_store: InMemoryQueueStore) -> OfflineMutationQueue:
    return OfflineMutationQueue(memory_store)


@pytest.fixture
def writer() -> InMemoryTaskWriter:
    return InMemoryTaskWriter()
