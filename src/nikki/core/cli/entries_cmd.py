"""nikki add/show/list/search/delete — entry commands."""

from __future__ import annotations

from datetime import UTC, datetime

import click

from nikki.journal.models import Category, EntryDraft
from nikki.journal.search import DateRange, FilterOptions, combine_search_and_filter, filter_entries

from .common import format_entry, parse_bound, run_with_store

_CATEGORY = click.Choice([c.value for c in Category])


def _filter_options(tags: tuple[str, ...], category: str | None, since: str | None, until: str | None) -> FilterOptions:
    start = parse_bound(since)
    end = parse_bound(until, end=True)
    date_range = None
    if start or end:
        date_range = DateRange(
            start=start or datetime.min.replace(tzinfo=UTC),
            end=end or datetime.max.replace(tzinfo=UTC),
        )
    return FilterOptions(tags=list(tags), category=category, date_range=date_range)


def _filter_flags(func):
    func = click.option("--until", default=None, help="Latest creation date (inclusive).")(func)
    func = click.option("--since", default=None, help="Earliest creation date (inclusive).")(func)
    func = click.option("--category", "-c", type=_CATEGORY, default=None, help="Only this category.")(func)
    func = click.option("--tag", "-t", "tags", multiple=True, help="Entries with any of these tags.")(func)
    return func


@click.command()
@click.argument("content")
@click.option("--category", "-c", type=_CATEGORY, default=Category.OTHER.value, show_default=True)
@click.option("--tag", "-t", "tags", multiple=True, help="Tag the entry (repeatable).")
@click.pass_context
def add(ctx: click.Context, content: str, category: str, tags: tuple[str, ...]) -> None:
    """Write a new entry."""
    draft = EntryDraft(content=content, category=category, tags=list(dict.fromkeys(tags)))
    entry_id = run_with_store(ctx, lambda store: store.add_entry(draft))
    click.echo(entry_id)


@click.command()
@click.argument("entry_id")
@click.pass_context
def show(ctx: click.Context, entry_id: str) -> None:
    """Print one entry."""
    entry = run_with_store(ctx, lambda store: store.get_entry(entry_id))
    if entry is None:
        raise click.ClickException(f"No entry with id {entry_id}")
    click.echo(format_entry(entry, full=True))


@click.command(name="list")
@_filter_flags
@click.pass_context
def list_entries(ctx: click.Context, tags, category, since, until) -> None:
    """List entries, newest first."""
    options = _filter_options(tags, category, since, until)
    entries = run_with_store(ctx, lambda store: store.get_all_entries())
    entries = filter_entries(entries, options)
    entries.sort(key=lambda e: e.created_at, reverse=True)
    if not entries:
        click.echo("No entries.")
        return
    for entry in entries:
        click.echo(format_entry(entry))


@click.command()
@click.argument("query")
@_filter_flags
@click.pass_context
def search(ctx: click.Context, query: str, tags, category, since, until) -> None:
    """Fuzzy-search entries, most relevant first."""
    options = _filter_options(tags, category, since, until)
    entries = run_with_store(ctx, lambda store: store.get_all_entries())
    results = combine_search_and_filter(entries, query, options)
    if not results:
        click.echo("No matches.")
        return
    for entry in results:
        click.echo(format_entry(entry))


@click.command()
@click.argument("entry_id")
@click.pass_context
def delete(ctx: click.Context, entry_id: str) -> None:
    """Delete an entry (no error if it does not exist)."""
    deleted = run_with_store(ctx, lambda store: store.delete_entry(entry_id))
    click.echo("Deleted." if deleted else "Nothing to delete.")
