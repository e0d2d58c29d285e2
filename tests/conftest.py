"""Shared test fixtures for nikki."""

import os
import tempfile
from datetime import UTC, datetime

import pytest
import pytest_asyncio

from nikki.journal.config import StoreConfig
from nikki.journal.database import Database
from nikki.journal.models import Category, JournalEntry
from nikki.journal.search import clear_search_cache
from nikki.journal.store import JournalStore


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {"data_dir": os.path.join(tmp_dir, "data")},
        "database": {"name": "diary"},
        "search": {"threshold": 0.25},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def store_config(tmp_path):
    return StoreConfig(data_dir=tmp_path / "data", name="test-journal")


@pytest_asyncio.fixture
async def db(store_config):
    handle = await Database(store_config).open()
    yield handle
    await handle.close()


@pytest.fixture
def store(db):
    return JournalStore(db)


@pytest.fixture(autouse=True)
def _fresh_search_cache():
    clear_search_cache()
    yield
    clear_search_cache()


def make_entry(entry_id, content, tags, category, created):
    return JournalEntry(
        id=entry_id,
        created_at=created,
        updated_at=created,
        content=content,
        tags=tags,
        category=category,
    )


@pytest.fixture
def sample_entries():
    return [
        make_entry(
            "1",
            "今日は仕事で大きな成果があった。チームメンバーと協力して目標を達成できた。",
            ["仕事", "達成感", "チーム"],
            Category.WORK,
            datetime(2025, 1, 10, tzinfo=UTC),
        ),
        make_entry(
            "2",
            "朝から気分が良い。健康的な朝食を食べて、ジョギングもできた。",
            ["健康", "運動", "朝"],
            Category.PRIVATE,
            datetime(2025, 1, 11, tzinfo=UTC),
        ),
        make_entry(
            "3",
            "新しいプログラミング言語を学び始めた。TypeScriptの型システムが面白い。",
            ["学習", "プログラミング", "TypeScript"],
            Category.STUDY,
            datetime(2025, 1, 12, tzinfo=UTC),
        ),
        make_entry(
            "4",
            "仕事のプロジェクトが難航している。でも諦めずに頑張る。",
            ["仕事", "挑戦"],
            Category.WORK,
            datetime(2025, 1, 13, tzinfo=UTC),
        ),
        make_entry(
            "5",
            "友人と楽しい時間を過ごした。久しぶりに笑った。",
            ["友人", "楽しい"],
            Category.PRIVATE,
            datetime(2025, 1, 14, tzinfo=UTC),
        ),
    ]
