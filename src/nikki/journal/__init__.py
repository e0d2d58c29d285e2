"""Journal store and search.

Provides the entry/summary data models, a SQLite-backed ``Database``
handle with ``JournalStore`` and ``SummaryStore`` on top, and the fuzzy
search / structural filter query engine.
"""

from .config import SearchConfig, StoreConfig
from .database import SCHEMA_VERSION, Database, close_database, open_database
from .models import (
    UNSET,
    AIConversation,
    Category,
    ConversationRole,
    EmotionAnalysis,
    EmotionScores,
    EntryDraft,
    EntryPatch,
    JournalEntry,
    MonthlySummary,
    WeeklySummary,
)
from .search import (
    DateRange,
    EntrySearcher,
    FilterOptions,
    FuzzyScorer,
    Scorer,
    SearchHit,
    clear_search_cache,
    combine_search_and_filter,
    filter_entries,
    search_entries,
)
from .store import JournalStore
from .summaries import SummaryStore

__all__ = [
    "SCHEMA_VERSION",
    "UNSET",
    "AIConversation",
    "Category",
    "ConversationRole",
    "Database",
    "DateRange",
    "EmotionAnalysis",
    "EmotionScores",
    "EntryDraft",
    "EntryPatch",
    "EntrySearcher",
    "FilterOptions",
    "FuzzyScorer",
    "JournalEntry",
    "JournalStore",
    "MonthlySummary",
    "Scorer",
    "SearchConfig",
    "SearchHit",
    "StoreConfig",
    "SummaryStore",
    "WeeklySummary",
    "clear_search_cache",
    "close_database",
    "combine_search_and_filter",
    "filter_entries",
    "open_database",
    "search_entries",
]
