"""Shared setup logic for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, time
from pathlib import Path
from typing import TypeVar

import click

from nikki.core.config import Config
from nikki.core.exceptions import ConfigurationError, NikkiError
from nikki.core.utils.logging import setup_logging
from nikki.journal.config import SearchConfig, StoreConfig
from nikki.journal.database import Database
from nikki.journal.models import JournalEntry
from nikki.journal.search import configure_search
from nikki.journal.store import JournalStore
from nikki.journal.timeutil import ensure_utc

T = TypeVar("T")

NIKKI_DIR = Path.home() / ".nikki"
DEFAULT_CONFIG_PATH = NIKKI_DIR / "config.yaml"
LOG_FILE_NAME = "nikki.log"


def load_config(ctx: click.Context) -> Config:
    """Build and validate the Config from the group's --config/--data-dir options.

    Creates the configured directories and starts logging: warnings to
    stderr, and a fuller history to ``logging.file`` (default
    ``<paths.log_dir>/nikki.log``).
    """
    obj = ctx.find_root().obj or {}
    try:
        config = Config(config_file=obj.get("config_file"), data_dir=obj.get("data_dir"))
        settings = config.validated()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    config.ensure_directories()
    log_file = settings.logging.file
    if log_file is None and settings.paths.log_dir is not None:
        log_file = str(settings.paths.log_dir / LOG_FILE_NAME)
    setup_logging(level=settings.logging.level.upper(), log_file=log_file)
    return config


def run_with_store(ctx: click.Context, work: Callable[[JournalStore], Awaitable[T]]) -> T:
    """Open the journal database, run ``work(store)``, and always close it.

    Library errors are reported as a click error (exit code 1).
    """
    config = load_config(ctx)

    async def _run() -> T:
        db = await Database(StoreConfig.from_config(config)).open()
        try:
            return await work(JournalStore(db))
        finally:
            await db.close()

    try:
        configure_search(SearchConfig.from_config(config))
        return asyncio.run(_run())
    except NikkiError as e:
        raise click.ClickException(str(e)) from e


def parse_bound(value: str | None, *, end: bool = False) -> datetime | None:
    """Parse an ISO date or datetime option. A bare ``--until`` date covers the whole day."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Expected an ISO date or datetime, got {value!r}") from None
    if end and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return ensure_utc(parsed)


def format_entry(entry: JournalEntry, *, full: bool = False) -> str:
    created = entry.created_at.strftime("%Y-%m-%d %H:%M")
    tags = " ".join(f"#{t}" for t in entry.tags)
    header = f"{entry.id}  {created}  [{entry.category}]  {tags}".rstrip()
    if full:
        return f"{header}\n\n{entry.content}"
    first_line = entry.content.splitlines()[0] if entry.content else ""
    preview = first_line[:60] + "..." if len(first_line) > 60 else first_line
    return f"{header}\n    {preview}"
