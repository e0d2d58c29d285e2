"""Tests for nikki.journal.database (lifecycle, schema, transactions)."""

import sqlite3

import pytest

from nikki.core.exceptions import StorageError, StorageUnavailableError
from nikki.journal.config import StoreConfig
from nikki.journal.database import (
    PARTITIONS,
    SCHEMA_VERSION,
    Database,
    close_database,
    open_database,
)
from nikki.journal.models import Category, EntryDraft
from nikki.journal.store import JournalStore


class TestOpen:
    @pytest.mark.asyncio
    async def test_creates_partitions_and_indexes(self, db):
        assert await db.partition_names() == list(PARTITIONS)
        indexes = await db.index_names()
        assert "idx_entries_created_at" in indexes
        assert "idx_entries_category" in indexes
        assert "idx_entry_tags_tag" in indexes
        assert "idx_weekly_summaries_week_start" in indexes
        assert "idx_monthly_summaries_month" in indexes
        assert await db.schema_version() == SCHEMA_VERSION

    @pytest.mark.asyncio
    async def test_file_location(self, db, store_config):
        assert db.path == store_config.data_dir / "test-journal.sqlite3"
        assert db.path.exists()

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, db):
        again = await db.open()
        assert again is db
        assert db.is_open

    @pytest.mark.asyncio
    async def test_path_argument(self, tmp_path):
        db = await Database(tmp_path / "nested" / "diary.sqlite3").open()
        try:
            assert db.config.name == "diary"
            assert db.path == tmp_path / "nested" / "diary.sqlite3"
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_reopen_preserves_data(self, store_config):
        db = await Database(store_config).open()
        entry_id = await JournalStore(db).add_entry(EntryDraft(content="persisted", category=Category.OTHER))
        await db.close()
        assert not db.is_open

        await db.open()
        try:
            assert (await JournalStore(db).get_entry(entry_id)).content == "persisted"
            assert await db.schema_version() == SCHEMA_VERSION
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_upgrade_from_empty_file(self, store_config):
        store_config.path.parent.mkdir(parents=True)
        sqlite3.connect(store_config.path).close()

        db = await Database(store_config).open()
        try:
            assert await db.partition_names() == list(PARTITIONS)
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_newer_schema_version_refused(self, store_config):
        store_config.path.parent.mkdir(parents=True)
        conn = sqlite3.connect(store_config.path)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
        conn.close()

        db = Database(store_config)
        with pytest.raises(StorageUnavailableError):
            await db.open()
        assert not db.is_open

    @pytest.mark.asyncio
    async def test_unopenable_path(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        db = Database(StoreConfig(data_dir=blocker / "sub"))
        with pytest.raises(StorageUnavailableError):
            await db.open()


class TestRun:
    @pytest.mark.asyncio
    async def test_closed_handle_raises(self, store_config):
        db = Database(store_config)
        with pytest.raises(StorageUnavailableError):
            await db.run(lambda conn: conn.execute("SELECT 1").fetchone())

    @pytest.mark.asyncio
    async def test_sqlite_errors_wrapped(self, db):
        with pytest.raises(StorageError):
            await db.run(lambda conn: conn.execute("SELECT * FROM no_such_table").fetchall())

    @pytest.mark.asyncio
    async def test_write_rolls_back_on_error(self, db):
        def _work(conn):
            conn.execute(
                "INSERT INTO entries (id, created_at, updated_at, category, payload) VALUES ('x', '', '', '', '{}')"
            )
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await db.run(_work, write=True)
        assert await db.run(lambda conn: conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]) == 0

    @pytest.mark.asyncio
    async def test_usable_after_failed_write(self, db):
        with pytest.raises(StorageError):
            await db.run(lambda conn: conn.execute("INSERT INTO nowhere VALUES (1)"), write=True)
        assert await db.run(lambda conn: conn.execute("SELECT 1").fetchone()[0]) == 1


class TestDeleteFiles:
    @pytest.mark.asyncio
    async def test_refuses_while_open(self, db):
        with pytest.raises(StorageError):
            db.delete_files()
        assert db.path.exists()

    @pytest.mark.asyncio
    async def test_delete_then_reopen_is_empty(self, store_config):
        db = await Database(store_config).open()
        await JournalStore(db).add_entry(EntryDraft(content="gone soon", category=Category.OTHER))
        await db.close()

        db.delete_files()
        assert not db.path.exists()

        await db.open()
        try:
            assert await JournalStore(db).count_entries() == 0
        finally:
            await db.close()

    def test_missing_files_ok(self, store_config):
        Database(store_config).delete_files()


class TestProcessHandles:
    @pytest.mark.asyncio
    async def test_open_database_shares_handle(self, store_config):
        try:
            first = await open_database(store_config)
            second = await open_database(StoreConfig(data_dir=store_config.data_dir, name=store_config.name))
            assert first is second
            assert first.is_open
        finally:
            await close_database(store_config)
        assert not first.is_open

    @pytest.mark.asyncio
    async def test_close_all(self, tmp_path):
        a = await open_database(StoreConfig(data_dir=tmp_path, name="a"))
        b = await open_database(StoreConfig(data_dir=tmp_path, name="b"))
        await close_database()
        assert not a.is_open
        assert not b.is_open

    @pytest.mark.asyncio
    async def test_close_unknown_is_noop(self, tmp_path):
        await close_database(StoreConfig(data_dir=tmp_path, name="never-opened"))
