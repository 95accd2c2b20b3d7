"""SQLite-backed queue store.

Persists queued operations in a single table indexed by timestamp and
workspace, so pending writes survive process restarts. Every public
method opens its own connection and commits before returning.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
from pydantic import ValidationError

from smera.core.errors import StoreUnavailableError
from smera.core.logging import get_logger
from smera.core.models import QueuedOperation
from smera.queue.base import QueueStore
from smera.utils.time import utc_now

_logger = get_logger("queue.sqlite")

SCHEMA_VERSION = 1

_SELECT_COLUMNS = "id, operation, timestamp, retries, last_error"


class SQLiteQueueStore(QueueStore):
    """Queue store persisted in a SQLite database file.

    Table ``queued_operations`` keeps an autoincrement ``seq`` column so
    records with equal timestamps replay in insertion order.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, reporting storage failures as StoreUnavailableError."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except (aiosqlite.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Offline queue store unavailable at {self.db_path}: {e}"
            ) from e

    async def open(self) -> None:
        """Create the database file and schema if needed."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreUnavailableError(
                    f"Cannot create queue directory {self.db_path.parent}: {e}"
                ) from e
            async with self._connect() as db:
                await self._migrate(db)
            self._initialized = True

    async def _migrate(self, db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
        """)
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        row = await cursor.fetchone()
        current = row[0] if row and row[0] is not None else 0

        if current < 1:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS queued_operations (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    workspace_id TEXT NOT NULL,
                    operation_type TEXT NOT NULL,
                    operation TEXT NOT NULL,
                    timestamp INTEGER NOT NULL,
                    retries INTEGER NOT NULL DEFAULT 0,
                    last_error TEXT
                )
            """)
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_queue_timestamp "
                "ON queued_operations(timestamp, seq)"
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_queue_workspace "
                "ON queued_operations(workspace_id, timestamp, seq)"
            )
            await db.execute(
                "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, utc_now().isoformat()),
            )
            _logger.info("schema_migrated", from_version=current, to_version=SCHEMA_VERSION)

        await db.commit()

    def _row_to_record(self, row: aiosqlite.Row) -> QueuedOperation | None:
        try:
            return QueuedOperation.model_validate({
                "id": row["id"],
                "operation": json.loads(row["operation"]),
                "timestamp": row["timestamp"],
                "retries": row["retries"],
                "last_error": row["last_error"],
            })
        except (ValidationError, ValueError) as exc:
            _logger.warning("queue_record_corrupt", operation_id=row["id"], error=str(exc))
            return None

    async def add(self, record: QueuedOperation) -> None:
        await self.open()
        async with self._connect() as db:
            try:
                await db.execute(
                    "INSERT INTO queued_operations "
                    "(id, workspace_id, operation_type, operation, timestamp, retries, last_error) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.workspace_id,
                        record.operation_type,
                        record.operation.model_dump_json(),
                        record.timestamp,
                        record.retries,
                        record.last_error,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Duplicate queued operation id: {record.id}") from e
            await db.commit()

    async def get(self, operation_id: str) -> QueuedOperation | None:
        await self.open()
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM queued_operations WHERE id = ?",
                (operation_id,),
            )
            row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    async def put(self, record: QueuedOperation) -> None:
        await self.open()
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE queued_operations SET operation = ?, retries = ?, last_error = ? "
                "WHERE id = ?",
                (
                    record.operation.model_dump_json(),
                    record.retries,
                    record.last_error,
                    record.id,
                ),
            )
            if cursor.rowcount == 0:
                raise KeyError(record.id)
            await db.commit()

    async def delete(self, operation_id: str) -> bool:
        await self.open()
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM queued_operations WHERE id = ?", (operation_id,)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def list_ordered(self, workspace_id: str | None = None) -> list[QueuedOperation]:
        await self.open()
        async with self._connect() as db:
            if workspace_id is None:
                cursor = await db.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM queued_operations "
                    "ORDER BY timestamp, seq"
                )
            else:
                cursor = await db.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM queued_operations "
                    "WHERE workspace_id = ? ORDER BY timestamp, seq",
                    (workspace_id,),
                )
            rows = await cursor.fetchall()

        records = []
        for row in rows:
            record = self._row_to_record(row)
            if record is not None:
                records.append(record)
        return records

    async def clear(self) -> None:
        await self.open()
        async with self._connect() as db:
            await db.execute("DELETE FROM queued_operations")
            await db.commit()

    async def count(self, workspace_id: str | None = None) -> int:
        await self.open()
        async with self._connect() as db:
            if workspace_id is None:
                cursor = await db.execute("SELECT COUNT(*) FROM queued_operations")
            else:
                cursor = await db.execute(
                    "SELECT COUNT(*) FROM queued_operations WHERE workspace_id = ?",
                    (workspace_id,),
                )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0
