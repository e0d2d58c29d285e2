"""Fuzzy relevance search and structural filtering over journal entries.

Search ranks entries by a weighted fuzzy match across three fields
(content 0.7, tags 0.2, category 0.1 by default). Filtering applies exact
tag/category/date predicates. ``combine_search_and_filter`` always searches
first and then filters the ranked subset, keeping the relevance order.

Everything here is synchronous and in-memory; nothing is persisted.

Example::

    entries = await store.get_all_entries()
    hits = search_entries(entries, "仕事")
    work = filter_entries(entries, FilterOptions(category=Category.WORK))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from rapidfuzz import fuzz

from .config import SearchConfig
from .models import Category, JournalEntry
from .timeutil import ensure_utc


def normalize_text(text: str) -> str:
    """Case-fold and collapse whitespace so matching is case-insensitive."""
    return " ".join(text.casefold().split())


@runtime_checkable
class Scorer(Protocol):
    """Scores one normalised query against one normalised field value.

    Returns a 0-100 relevance, or None when the candidate does not match.
    """

    def score(self, query: str, candidate: str) -> float | None: ...


class FuzzyScorer:
    """Typo-tolerant, position-insensitive matching backed by rapidfuzz.

    When the candidate is at least as long as the query, the query is aligned
    against the best-matching window of the candidate (``partial_ratio``), so
    "work" matches "worked" anywhere in the text. Shorter candidates are
    compared whole (``ratio``) to stop one-letter tags matching everything.
    """

    def __init__(self, threshold: float = 0.3):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self.threshold = threshold
        self.cutoff = (1.0 - threshold) * 100.0

    def score(self, query: str, candidate: str) -> float | None:
        if not query or not candidate:
            return None
        if len(candidate) >= len(query):
            result = fuzz.partial_ratio(query, candidate, score_cutoff=self.cutoff)
        else:
            result = fuzz.ratio(query, candidate, score_cutoff=self.cutoff)
        if result < self.cutoff:
            return None
        return float(result)


@dataclass(frozen=True)
class SearchHit:
    """A matched entry with its weighted relevance (0-1, higher is better)."""

    entry: JournalEntry
    score: float

    def __repr__(self) -> str:
        return f"SearchHit(id='{self.entry.id}', score={self.score:.3f})"


@dataclass(frozen=True)
class _IndexedEntry:
    content: str
    tags: tuple[str, ...]
    category: str


def _fingerprint(entries: Sequence[JournalEntry]) -> tuple[tuple[str, datetime], ...]:
    return tuple((e.id, e.updated_at) for e in entries)


class SearchIndex:
    """Immutable, pre-normalised view of one entry collection."""

    def __init__(self, entries: Sequence[JournalEntry]):
        self.size = len(entries)
        self.fingerprint = _fingerprint(entries)
        self._docs = tuple(
            _IndexedEntry(
                content=normalize_text(e.content),
                tags=tuple(normalize_text(t) for t in e.tags),
                category=normalize_text(str(e.category)),
            )
            for e in entries
        )

    def matches(self, entries: Sequence[JournalEntry]) -> bool:
        """Whether this index was built from ``entries``."""
        return self.size == len(entries) and self.fingerprint == _fingerprint(entries)

    def rank(self, query: str, scorer: Scorer, config: SearchConfig) -> list[tuple[int, float]]:
        """Return ``(position, relevance)`` pairs, best first, ties in input order."""
        ranked: list[tuple[int, float]] = []
        for position, doc in enumerate(self._docs):
            matched = False
            relevance = 0.0

            content_score = scorer.score(query, doc.content)
            if content_score is not None:
                matched = True
                relevance += config.content_weight * content_score / 100.0

            tag_scores = [s for s in (scorer.score(query, tag) for tag in doc.tags) if s is not None]
            if tag_scores:
                matched = True
                relevance += config.tags_weight * max(tag_scores) / 100.0

            category_score = scorer.score(query, doc.category)
            if category_score is not None:
                matched = True
                relevance += config.category_weight * category_score / 100.0

            if matched:
                ranked.append((position, relevance))

        # list.sort is stable, so equal scores keep input order
        ranked.sort(key=lambda pair: pair[1], reverse=True)
        return ranked


class EntrySearcher:
    """Relevance search with a cached index.

    The index is reused while searches target the same collection. It is
    rebuilt when the collection size changes, and also when its ids or
    ``updated_at`` values differ. A rebuild swaps in a new ``SearchIndex``
    and never mutates the previous one, so concurrent readers stay
    consistent. Call ``clear_cache()`` after changing entries in place.
    """

    def __init__(self, config: SearchConfig | None = None, scorer: Scorer | None = None):
        self.config = config or SearchConfig()
        self.scorer = scorer or FuzzyScorer(self.config.threshold)
        self._index: SearchIndex | None = None

    @property
    def is_built(self) -> bool:
        return self._index is not None

    @property
    def document_count(self) -> int:
        index = self._index
        return index.size if index else 0

    def clear_cache(self) -> None:
        self._index = None

    def _index_for(self, entries: Sequence[JournalEntry]) -> SearchIndex:
        index = self._index
        if index is None or not index.matches(entries):
            index = SearchIndex(entries)
            self._index = index
        return index

    def search_with_scores(self, entries: Sequence[JournalEntry], query: str) -> list[SearchHit]:
        """Rank ``entries`` against ``query``.

        A blank query returns every entry in input order with score 0.
        """
        if not query or not query.strip():
            return [SearchHit(entry=e, score=0.0) for e in entries]

        index = self._index_for(entries)
        ranked = index.rank(normalize_text(query), self.scorer, self.config)
        return [SearchHit(entry=entries[position], score=score) for position, score in ranked]

    def search(self, entries: Sequence[JournalEntry], query: str) -> list[JournalEntry]:
        """Entries matching ``query``, most relevant first.

        A blank query returns ``entries`` unchanged, in their given order.
        No match returns an empty list.
        """
        if not query or not query.strip():
            return list(entries)
        return [hit.entry for hit in self.search_with_scores(entries, query)]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


@dataclass
class DateRange:
    """Inclusive ``[start, end]`` bounds compared against ``created_at``."""

    start: datetime
    end: datetime

    def __contains__(self, moment: datetime) -> bool:
        return ensure_utc(self.start) <= ensure_utc(moment) <= ensure_utc(self.end)


@dataclass
class FilterOptions:
    """Structural predicates, ANDed together when more than one is set.

    Attributes:
        tags: Entry passes if it has at least one of these tags. Empty = no constraint.
        category: Entry category must equal this.
        date_range: Entry ``created_at`` must fall inside this range.
    """

    tags: list[str] = field(default_factory=list)
    category: Category | None = None
    date_range: DateRange | None = None

    def __post_init__(self):
        if self.category is not None:
            self.category = Category(self.category)

    @property
    def is_empty(self) -> bool:
        return not self.tags and self.category is None and self.date_range is None


def filter_entries(entries: Sequence[JournalEntry], options: FilterOptions | None = None) -> list[JournalEntry]:
    """Keep entries satisfying every predicate present in ``options``.

    No predicates returns all entries. An inverted date range simply matches
    nothing.
    """
    filtered = list(entries)
    if options is None or options.is_empty:
        return filtered

    if options.tags:
        wanted = set(options.tags)
        filtered = [e for e in filtered if wanted.intersection(e.tags)]

    if options.category is not None:
        filtered = [e for e in filtered if e.category == options.category]

    if options.date_range is not None:
        date_range = options.date_range
        filtered = [e for e in filtered if e.created_at in date_range]

    return filtered


# ---------------------------------------------------------------------------
# Module-level API (shared default searcher)
# ---------------------------------------------------------------------------

_default_searcher = EntrySearcher()


def get_default_searcher() -> EntrySearcher:
    return _default_searcher


def configure_search(config: SearchConfig) -> EntrySearcher:
    """Replace the shared searcher with one built from ``config``."""
    global _default_searcher
    _default_searcher = EntrySearcher(config)
    return _default_searcher


def clear_search_cache() -> None:
    """Drop the shared searcher's cached index."""
    _default_searcher.clear_cache()


def search_entries(entries: Sequence[JournalEntry], query: str) -> list[JournalEntry]:
    """Fuzzy relevance search using the shared searcher. See ``EntrySearcher.search``."""
    return _default_searcher.search(entries, query)


def combine_search_and_filter(
    entries: Sequence[JournalEntry],
    query: str,
    options: FilterOptions | None = None,
) -> list[JournalEntry]:
    """Search first, then filter the ranked result, preserving its order."""
    return filter_entries(search_entries(entries, query), options)
