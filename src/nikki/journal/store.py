"""JournalStore — CRUD and index lookups over journal entries.

Each mutation is one SQLite transaction, so a reader never sees new content
with a stale ``updated_at`` (or the reverse). There is no cross-record
transaction: adding or deleting several entries is several independent
operations.

Every read path rebuilds entries through ``entry_from_record``, which
rehydrates all stored timestamps and returns objects that do not alias
the stored record.
"""

from __future__ import annotations

import dataclasses
import sqlite3
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from loguru import logger

from ..core.exceptions import EntryNotFoundError, WriteConflictError
from .codec import dumps, entry_from_record, entry_to_record, loads
from .database import ENTRIES, Database
from .models import Category, EntryDraft, EntryPatch, JournalEntry
from .timeutil import new_entry_id, next_update_time, to_storage, utc_now

_GENERATED_FIELDS = ("id", "created_at", "updated_at")


def _rows_to_entries(rows: list[sqlite3.Row | tuple]) -> list[JournalEntry]:
    return [entry_from_record(loads(row[0])) for row in rows]


def _write_tags(conn: sqlite3.Connection, entry_id: str, tags: list[str]) -> None:
    conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
    conn.executemany(
        "INSERT OR IGNORE INTO entry_tags (entry_id, tag) VALUES (?, ?)",
        [(entry_id, tag) for tag in tags],
    )


class JournalStore:
    """Async CRUD and secondary-index queries for ``JournalEntry`` records.

    Example::

        db = await open_database(StoreConfig(data_dir=data_dir))
        store = JournalStore(db)
        entry_id = await store.add_entry(EntryDraft(content="...", category=Category.WORK))
        entry = await store.get_entry(entry_id)
    """

    def __init__(self, db: Database, *, id_factory: Callable[[], str] = new_entry_id) -> None:
        """
        Args:
            db: An open (or later opened) database handle.
            id_factory: Generates ids for new entries.
        """
        self.db = db
        self._id_factory = id_factory

    # -- CRUD ----------------------------------------------------------------

    async def add_entry(self, draft: EntryDraft | Mapping[str, Any]) -> str:
        """Persist a new entry and return its generated id.

        Any ``id``/``created_at``/``updated_at`` in a mapping draft is ignored.

        Raises:
            WriteConflictError: If the generated id already exists.
        """
        if isinstance(draft, Mapping):
            draft = EntryDraft(**{k: v for k, v in draft.items() if k not in _GENERATED_FIELDS})

        entry_id = self._id_factory()
        now = utc_now()
        entry = JournalEntry(
            id=entry_id,
            created_at=now,
            updated_at=now,
            content=draft.content,
            category=draft.category,
            tags=list(draft.tags),
            images=list(draft.images),
            ai_conversations=list(draft.ai_conversations),
            emotion_analysis=draft.emotion_analysis,
        )
        record = entry_to_record(entry)

        def _insert(conn: sqlite3.Connection) -> None:
            try:
                conn.execute(
                    "INSERT INTO entries (id, created_at, updated_at, category, payload) VALUES (?, ?, ?, ?, ?)",
                    (entry_id, record["created_at"], record["updated_at"], record["category"], dumps(record)),
                )
            except sqlite3.IntegrityError as e:
                logger.warning(f"Entry id collision on create: {entry_id}")
                raise WriteConflictError(entry_id, ENTRIES) from e
            _write_tags(conn, entry_id, record["tags"])

        await self.db.run(_insert, write=True)
        logger.debug(f"Added entry {entry_id} ({entry.category}, {len(entry.tags)} tags)")
        return entry_id

    async def get_entry(self, entry_id: str) -> JournalEntry | None:
        """Get an entry by id. Returns None if not found."""

        def _select(conn: sqlite3.Connection) -> JournalEntry | None:
            row = conn.execute("SELECT payload FROM entries WHERE id = ?", (entry_id,)).fetchone()
            return entry_from_record(loads(row[0])) if row else None

        return await self.db.run(_select)

    async def get_all_entries(self) -> list[JournalEntry]:
        """Return every entry. Order is unspecified; callers sort."""
        return await self.db.run(lambda conn: _rows_to_entries(conn.execute("SELECT payload FROM entries").fetchall()))

    async def update_entry(self, entry_id: str, patch: EntryPatch | Mapping[str, Any]) -> JournalEntry:
        """Replace the supplied fields and bump ``updated_at``.

        The merge is shallow: absent fields keep their value, present fields
        replace it. ``id`` and ``created_at`` never change. ``updated_at``
        moves forward even for an empty patch.

        Returns:
            The entry as stored after the update.

        Raises:
            EntryNotFoundError: If no entry has ``entry_id``.
        """
        if not isinstance(patch, EntryPatch):
            patch = EntryPatch.from_mapping(patch)
        changes = patch.changes()

        def _update(conn: sqlite3.Connection) -> JournalEntry:
            row = conn.execute("SELECT payload FROM entries WHERE id = ?", (entry_id,)).fetchone()
            if row is None:
                raise EntryNotFoundError(entry_id)
            current = entry_from_record(loads(row[0]))
            updated = dataclasses.replace(current, **changes, updated_at=next_update_time(current.updated_at))
            record = entry_to_record(updated)
            conn.execute(
                "UPDATE entries SET updated_at = ?, category = ?, payload = ? WHERE id = ?",
                (record["updated_at"], record["category"], dumps(record), entry_id),
            )
            if "tags" in changes:
                _write_tags(conn, entry_id, record["tags"])
            return entry_from_record(record)

        updated = await self.db.run(_update, write=True)
        logger.debug(f"Updated entry {entry_id}: {sorted(changes) or 'no fields'}")
        return updated

    async def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry. Deleting a missing id is a no-op.

        Returns:
            True if a record was removed.
        """

        def _delete(conn: sqlite3.Connection) -> bool:
            return conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,)).rowcount > 0

        deleted = await self.db.run(_delete, write=True)
        if deleted:
            logger.debug(f"Deleted entry {entry_id}")
        return deleted

    # -- Index queries -------------------------------------------------------

    async def get_entries_by_date_range(self, start: datetime, end: datetime) -> list[JournalEntry]:
        """Entries whose ``created_at`` lies in ``[start, end]``.

        Both bounds are inclusive. ``start`` after ``end`` yields an empty list.
        """
        bounds = (to_storage(start), to_storage(end))
        return await self.db.run(
            lambda conn: _rows_to_entries(
                conn.execute(
                    "SELECT payload FROM entries WHERE created_at BETWEEN ? AND ? ORDER BY created_at",
                    bounds,
                ).fetchall()
            )
        )

    async def get_entries_by_tag(self, tag: str) -> list[JournalEntry]:
        """Entries whose tag set contains exactly ``tag``."""
        return await self.db.run(
            lambda conn: _rows_to_entries(
                conn.execute(
                    "SELECT e.payload FROM entry_tags t JOIN entries e ON e.id = t.entry_id WHERE t.tag = ?",
                    (tag,),
                ).fetchall()
            )
        )

    async def get_entries_by_category(self, category: Category | str) -> list[JournalEntry]:
        """Entries in ``category``.

        Raises:
            ValueError: If ``category`` is not one of the Category values.
        """
        value = Category(category).value
        return await self.db.run(
            lambda conn: _rows_to_entries(
                conn.execute("SELECT payload FROM entries WHERE category = ?", (value,)).fetchall()
            )
        )

    async def count_entries(self) -> int:
        return await self.db.run(lambda conn: conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0])
