"""Database handle — lifecycle, schema and transactions for the journal store.

The journal lives in a single SQLite file with three partitions (tables):
``entries``, ``weekly_summaries`` and ``monthly_summaries``. The schema
version is tracked in ``PRAGMA user_version``; opening an older file runs
the idempotent upgrade step, which only ever creates what is missing.

A ``Database`` is an explicit lifecycle object: whoever composes the
application opens it once and hands it to ``JournalStore`` / ``SummaryStore``.
``open_database`` / ``close_database`` keep a process-wide handle per file
for callers that prefer not to thread the object through.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from loguru import logger

from ..core.exceptions import NikkiError, StorageError, StorageUnavailableError
from ..core.types import PathLike
from .config import StoreConfig

T = TypeVar("T")

SCHEMA_VERSION = 1

ENTRIES = "entries"
WEEKLY_SUMMARIES = "weekly_summaries"
MONTHLY_SUMMARIES = "monthly_summaries"
PARTITIONS = (ENTRIES, WEEKLY_SUMMARIES, MONTHLY_SUMMARIES)

# Every statement must stay safe to re-run against an existing schema.
_SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS entries (
        id          TEXT PRIMARY KEY,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL,
        category    TEXT NOT NULL,
        payload     TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_entries_created_at ON entries(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_entries_category ON entries(category)",
    # Multi-valued tag index: one row per (entry, tag)
    """
    CREATE TABLE IF NOT EXISTS entry_tags (
        entry_id    TEXT NOT NULL REFERENCES entries(id) ON DELETE CASCADE,
        tag         TEXT NOT NULL,
        PRIMARY KEY (entry_id, tag)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_entry_tags_tag ON entry_tags(tag)",
    """
    CREATE TABLE IF NOT EXISTS weekly_summaries (
        id          TEXT PRIMARY KEY,
        week_start  TEXT NOT NULL,
        payload     TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_weekly_summaries_week_start ON weekly_summaries(week_start)",
    """
    CREATE TABLE IF NOT EXISTS monthly_summaries (
        id          TEXT PRIMARY KEY,
        month       TEXT NOT NULL,
        payload     TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_monthly_summaries_month ON monthly_summaries(month)",
)


class Database:
    """An open-or-closed handle on the journal database file.

    ``open()`` is idempotent: calling it on an open handle returns the same
    handle. All SQLite work runs in a worker thread, serialised by a
    per-handle lock, so coroutines never block the event loop.

    Example::

        db = await Database(StoreConfig(data_dir=tmp)).open()
        store = JournalStore(db)
        entry_id = await store.add_entry(draft)
        await db.close()
    """

    def __init__(self, config: StoreConfig | PathLike | None = None) -> None:
        """
        Args:
            config: A ``StoreConfig``, or a path whose parent is the data
                directory and whose stem is the database name. Defaults to
                ``~/.nikki-data/nikki.sqlite3``.
        """
        if config is None:
            config = StoreConfig()
        elif not isinstance(config, StoreConfig):
            path = Path(config).expanduser()
            config = StoreConfig(data_dir=path.parent, name=path.stem)
        self.config = config
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.config.path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"Database(path='{self.path}', {state})"

    # -- lifecycle -----------------------------------------------------------

    async def open(self) -> Database:
        """Open the database, creating or upgrading the schema as needed.

        Raises:
            StorageUnavailableError: If the file cannot be opened or was
                written by a newer schema version.
        """
        if self._conn is not None:
            return self
        await asyncio.to_thread(self._open_sync)
        return self

    def _open_sync(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(
                    self.path,
                    timeout=self.config.timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
            except (OSError, sqlite3.Error) as e:
                logger.error(f"Cannot open journal database at {self.path}: {e}")
                raise StorageUnavailableError(f"Cannot open journal database at {self.path}: {e}") from e

            try:
                conn.execute("PRAGMA foreign_keys = ON")
                conn.execute("PRAGMA journal_mode = WAL")
                self._upgrade(conn)
            except StorageUnavailableError:
                conn.close()
                raise
            except sqlite3.Error as e:
                conn.close()
                logger.error(f"Cannot initialise journal schema at {self.path}: {e}")
                raise StorageUnavailableError(f"Cannot initialise journal schema at {self.path}: {e}") from e

            self._conn = conn
            logger.info(f"Opened journal database {self.path}")

    def _upgrade(self, conn: sqlite3.Connection) -> None:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version > SCHEMA_VERSION:
            raise StorageUnavailableError(
                f"Database {self.path} has schema version {version}; this build supports up to {SCHEMA_VERSION}"
            )
        if version == SCHEMA_VERSION:
            return

        logger.info(f"Upgrading journal schema {version} -> {SCHEMA_VERSION} at {self.path}")
        with _transaction(conn):
            for statement in _SCHEMA_STATEMENTS:
                conn.execute(statement)
            # PRAGMA does not accept bound parameters
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    async def close(self) -> None:
        """Release the handle. A later ``open()`` reinitialises cleanly."""
        await asyncio.to_thread(self._close_sync)

    def _close_sync(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.info(f"Closed journal database {self.path}")

    def delete_files(self) -> None:
        """Delete the database file and its WAL side files.

        Raises:
            StorageError: If the handle is still open.
        """
        if self.is_open:
            raise StorageError("Close the database before deleting it")
        for suffix in ("", "-wal", "-shm"):
            Path(f"{self.path}{suffix}").unlink(missing_ok=True)
        logger.info(f"Deleted journal database {self.path}")

    # -- execution -----------------------------------------------------------

    async def run(self, work: Callable[[sqlite3.Connection], T], *, write: bool = False) -> T:
        """Run ``work(conn)`` in a worker thread.

        With ``write=True`` the call is wrapped in a single transaction: it
        either commits as a whole or rolls back and re-raises.

        Raises:
            StorageUnavailableError: If the handle is closed.
            StorageError: For any other SQLite failure.
        """
        return await asyncio.to_thread(self._run_sync, work, write)

    def _run_sync(self, work: Callable[[sqlite3.Connection], T], write: bool) -> T:
        with self._lock:
            conn = self._conn
            if conn is None:
                raise StorageUnavailableError(f"Database {self.path} is not open")
            try:
                if write:
                    with _transaction(conn):
                        return work(conn)
                return work(conn)
            except NikkiError:
                raise
            except sqlite3.Error as e:
                logger.warning(f"Journal database operation failed: {e}")
                raise StorageError(f"Journal database operation failed: {e}") from e

    # -- introspection -------------------------------------------------------

    async def schema_version(self) -> int:
        return await self.run(lambda conn: conn.execute("PRAGMA user_version").fetchone()[0])

    async def partition_names(self) -> list[str]:
        """Names of the record partitions present in the file."""

        def _names(conn: sqlite3.Connection) -> list[str]:
            rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
            present = {row[0] for row in rows}
            return [name for name in PARTITIONS if name in present]

        return await self.run(_names)

    async def index_names(self) -> list[str]:
        def _names(conn: sqlite3.Connection) -> list[str]:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'index' AND name LIKE 'idx_%' ORDER BY name"
            ).fetchall()
            return [row[0] for row in rows]

        return await self.run(_names)


@contextmanager
def _transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


# ---------------------------------------------------------------------------
# Process-wide handles
# ---------------------------------------------------------------------------

_handles: dict[Path, Database] = {}
_handles_lock = threading.Lock()


async def open_database(config: StoreConfig | PathLike | None = None) -> Database:
    """Open (or return the already-open) process-wide handle for a database file."""
    candidate = Database(config)
    key = candidate.path.resolve()
    with _handles_lock:
        db = _handles.setdefault(key, candidate)
    return await db.open()


async def close_database(config: StoreConfig | PathLike | None = None) -> None:
    """Close one process-wide handle, or all of them when ``config`` is None."""
    with _handles_lock:
        if config is None:
            handles = list(_handles.values())
            _handles.clear()
        else:
            key = Database(config).path.resolve()
            handle = _handles.pop(key, None)
            handles = [handle] if handle else []
    for db in handles:
        await db.close()
