"""SummaryStore — weekly and monthly digest partitions.

Summaries are write-mostly caches of derived AI output. They follow the
entry store's contract: add assigns an id, get returns None when missing,
update raises EntryNotFoundError for a missing id, delete is a no-op for
missing ids, and every read rehydrates timestamps. Updates replace the
whole summary; a regenerated digest has no partial fields to merge.
"""

from __future__ import annotations

import dataclasses
import sqlite3
from collections.abc import Callable
from datetime import datetime

from loguru import logger

from ..core.exceptions import EntryNotFoundError, WriteConflictError
from .codec import dumps, loads, monthly_from_record, monthly_to_record, weekly_from_record, weekly_to_record
from .database import MONTHLY_SUMMARIES, WEEKLY_SUMMARIES, Database
from .models import MonthlySummary, WeeklySummary
from .timeutil import new_entry_id, to_storage


class SummaryStore:
    """Async CRUD for ``WeeklySummary`` and ``MonthlySummary`` records."""

    def __init__(self, db: Database, *, id_factory: Callable[[], str] = new_entry_id) -> None:
        self.db = db
        self._id_factory = id_factory

    def _insert(self, partition: str, record: dict, index_value: str) -> Callable[[sqlite3.Connection], None]:
        index_column = "week_start" if partition == WEEKLY_SUMMARIES else "month"

        def _run(conn: sqlite3.Connection) -> None:
            try:
                conn.execute(
                    f"INSERT INTO {partition} (id, {index_column}, payload) VALUES (?, ?, ?)",
                    (record["id"], index_value, dumps(record)),
                )
            except sqlite3.IntegrityError as e:
                logger.warning(f"Summary id collision in {partition}: {record['id']}")
                raise WriteConflictError(record["id"], partition) from e

        return _run

    def _replace(self, partition: str, record: dict, index_value: str) -> Callable[[sqlite3.Connection], None]:
        index_column = "week_start" if partition == WEEKLY_SUMMARIES else "month"

        def _run(conn: sqlite3.Connection) -> None:
            cursor = conn.execute(
                f"UPDATE {partition} SET {index_column} = ?, payload = ? WHERE id = ?",
                (index_value, dumps(record), record["id"]),
            )
            if cursor.rowcount == 0:
                raise EntryNotFoundError(record["id"], partition)

        return _run

    async def _delete(self, partition: str, summary_id: str) -> bool:
        return await self.db.run(
            lambda conn: conn.execute(f"DELETE FROM {partition} WHERE id = ?", (summary_id,)).rowcount > 0,
            write=True,
        )

    # -- Weekly --------------------------------------------------------------

    async def add_weekly_summary(self, summary: WeeklySummary) -> str:
        """Store a weekly summary, generating an id when it has none.

        Raises:
            WriteConflictError: If the id already exists.
        """
        summary = dataclasses.replace(summary, id=summary.id or self._id_factory())
        record = weekly_to_record(summary)
        await self.db.run(self._insert(WEEKLY_SUMMARIES, record, record["week_start"]), write=True)
        logger.debug(f"Added weekly summary {summary.id} for week of {record['week_start']}")
        return summary.id

    async def get_weekly_summary(self, summary_id: str) -> WeeklySummary | None:
        def _select(conn: sqlite3.Connection) -> WeeklySummary | None:
            row = conn.execute("SELECT payload FROM weekly_summaries WHERE id = ?", (summary_id,)).fetchone()
            return weekly_from_record(loads(row[0])) if row else None

        return await self.db.run(_select)

    async def get_all_weekly_summaries(self) -> list[WeeklySummary]:
        rows = await self.db.run(lambda conn: conn.execute("SELECT payload FROM weekly_summaries").fetchall())
        return [weekly_from_record(loads(row[0])) for row in rows]

    async def get_weekly_summaries_by_range(self, start: datetime, end: datetime) -> list[WeeklySummary]:
        """Weekly summaries whose ``week_start`` lies in ``[start, end]``."""
        bounds = (to_storage(start), to_storage(end))
        rows = await self.db.run(
            lambda conn: conn.execute(
                "SELECT payload FROM weekly_summaries WHERE week_start BETWEEN ? AND ? ORDER BY week_start",
                bounds,
            ).fetchall()
        )
        return [weekly_from_record(loads(row[0])) for row in rows]

    async def update_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        """Replace a stored weekly summary wholesale (summaries are regenerated, not patched).

        Raises:
            EntryNotFoundError: If no weekly summary has ``summary.id``.
        """
        record = weekly_to_record(summary)
        await self.db.run(self._replace(WEEKLY_SUMMARIES, record, record["week_start"]), write=True)
        logger.debug(f"Updated weekly summary {summary.id}")
        return weekly_from_record(record)

    async def delete_weekly_summary(self, summary_id: str) -> bool:
        return await self._delete(WEEKLY_SUMMARIES, summary_id)

    # -- Monthly -------------------------------------------------------------

    async def add_monthly_summary(self, summary: MonthlySummary) -> str:
        """Store a monthly summary, generating an id when it has none.

        Raises:
            WriteConflictError: If the id already exists.
        """
        summary = dataclasses.replace(summary, id=summary.id or self._id_factory())
        record = monthly_to_record(summary)
        await self.db.run(self._insert(MONTHLY_SUMMARIES, record, summary.month), write=True)
        logger.debug(f"Added monthly summary {summary.id} for {summary.month}")
        return summary.id

    async def get_monthly_summary(self, summary_id: str) -> MonthlySummary | None:
        def _select(conn: sqlite3.Connection) -> MonthlySummary | None:
            row = conn.execute("SELECT payload FROM monthly_summaries WHERE id = ?", (summary_id,)).fetchone()
            return monthly_from_record(loads(row[0])) if row else None

        return await self.db.run(_select)

    async def get_all_monthly_summaries(self) -> list[MonthlySummary]:
        rows = await self.db.run(lambda conn: conn.execute("SELECT payload FROM monthly_summaries").fetchall())
        return [monthly_from_record(loads(row[0])) for row in rows]

    async def get_monthly_summaries_by_month(self, month: str) -> list[MonthlySummary]:
        """Monthly summaries for ``month`` (``YYYY-MM``)."""
        rows = await self.db.run(
            lambda conn: conn.execute("SELECT payload FROM monthly_summaries WHERE month = ?", (month,)).fetchall()
        )
        return [monthly_from_record(loads(row[0])) for row in rows]

    async def update_monthly_summary(self, summary: MonthlySummary) -> MonthlySummary:
        """Replace a stored monthly summary wholesale.

        Raises:
            EntryNotFoundError: If no monthly summary has ``summary.id``.
        """
        record = monthly_to_record(summary)
        await self.db.run(self._replace(MONTHLY_SUMMARIES, record, summary.month), write=True)
        logger.debug(f"Updated monthly summary {summary.id}")
        return monthly_from_record(record)

    async def delete_monthly_summary(self, summary_id: str) -> bool:
        return await self._delete(MONTHLY_SUMMARIES, summary_id)
