"""Core data models for the journal store.

Plain dataclasses with light validation in ``__post_init__``. Values
returned by the store are fresh instances; mutating them never touches
the stored record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import StrEnum
from typing import Any, Final


class Category(StrEnum):
    """The closed set of entry categories."""

    WORK = "仕事"
    PRIVATE = "プライベート"
    STUDY = "学習"
    OTHER = "その他"


class ConversationRole(StrEnum):
    USER = "user"
    AI = "ai"


@dataclass
class AIConversation:
    """One turn of an AI chat attached to an entry."""

    id: str
    timestamp: datetime
    role: ConversationRole
    message: str

    def __post_init__(self):
        self.role = ConversationRole(self.role)


@dataclass
class EmotionScores:
    joy: float = 0
    sadness: float = 0
    anger: float = 0
    fear: float = 0
    surprise: float = 0


@dataclass
class EmotionAnalysis:
    """Result of an external emotion analysis; each score is 0-100."""

    positive: float
    negative: float
    emotions: EmotionScores
    analyzed_at: datetime

    def __post_init__(self):
        if isinstance(self.emotions, Mapping):
            self.emotions = EmotionScores(**self.emotions)


@dataclass
class EntryDraft:
    """A new entry before the store assigns its id and timestamps."""

    content: str
    category: Category
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    ai_conversations: list[AIConversation] = field(default_factory=list)
    emotion_analysis: EmotionAnalysis | None = None

    def __post_init__(self):
        from .codec import as_conversation, as_emotion_analysis

        self.category = Category(self.category)
        if not isinstance(self.content, str):
            raise ValueError("Content must be a string")
        self.ai_conversations = [as_conversation(c) for c in self.ai_conversations]
        self.emotion_analysis = as_emotion_analysis(self.emotion_analysis)


@dataclass
class JournalEntry:
    """A persisted journal entry.

    Attributes:
        id: Opaque unique identifier, assigned on creation.
        created_at: Set once on creation.
        updated_at: Bumped on every update; never earlier than created_at.
        content: Free text, the primary search target.
        tags: Tag strings; membership matters, order does not.
        category: One of the four Category values.
        images: Encoded image payloads, stored as-is.
        ai_conversations: Chat turns, oldest first.
        emotion_analysis: Optional analysis annotation.
    """

    id: str
    created_at: datetime
    updated_at: datetime
    content: str
    category: Category
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    ai_conversations: list[AIConversation] = field(default_factory=list)
    emotion_analysis: EmotionAnalysis | None = None

    def __post_init__(self):
        self.category = Category(self.category)

    def __repr__(self) -> str:
        preview = self.content[:30] + "..." if len(self.content) > 30 else self.content
        return f"JournalEntry(id='{self.id}', category='{self.category}', content='{preview}')"


class _Unset:
    """Marker for a patch field that was not supplied."""

    _instance: _Unset | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

# Fields a patch may never change.
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


@dataclass
class EntryPatch:
    """Partial update for an entry.

    Every field is independently present or absent. Absent fields keep their
    stored value; present fields replace it wholesale (lists are not merged).
    ``emotion_analysis=None`` is a present value and clears the annotation.
    """

    content: str | _Unset = UNSET
    category: Category | _Unset = UNSET
    tags: list[str] | _Unset = UNSET
    images: list[str] | _Unset = UNSET
    ai_conversations: list[AIConversation] | _Unset = UNSET
    emotion_analysis: EmotionAnalysis | None | _Unset = UNSET

    def __post_init__(self):
        # Plain-dict patches carry nested values in their record form
        from .codec import as_conversation, as_emotion_analysis

        if self.category is not UNSET:
            self.category = Category(self.category)
        if self.ai_conversations is not UNSET:
            self.ai_conversations = [as_conversation(c) for c in self.ai_conversations]
        if self.emotion_analysis is not UNSET:
            self.emotion_analysis = as_emotion_analysis(self.emotion_analysis)

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were supplied."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EntryPatch:
        """Build a patch from a plain mapping.

        ``id`` and ``created_at`` are dropped silently; any other unknown key
        raises ``ValueError``.
        """
        allowed = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in IMMUTABLE_FIELDS or key == "updated_at":
                continue
            if key not in allowed:
                raise ValueError(f"Unknown entry field: {key}")
            kwargs[key] = value
        return cls(**kwargs)


@dataclass
class WeeklySummary:
    """AI-generated digest of one week of entries."""

    week_start: datetime
    week_end: datetime
    summary: str
    emotion_trend: EmotionAnalysis
    generated_at: datetime
    themes: list[str] = field(default_factory=list)
    id: str = ""


@dataclass
class MonthlySummary:
    """AI-generated digest of one calendar month (``month`` is ``YYYY-MM``)."""

    month: str
    summary: str
    emotion_trend: EmotionAnalysis
    generated_at: datetime
    themes: list[str] = field(default_factory=list)
    id: str = ""

    def __post_init__(self):
        try:
            datetime.strptime(self.month, "%Y-%m")
        except (TypeError, ValueError):
            raise ValueError(f"Month must be formatted YYYY-MM, got {self.month!r}") from None
