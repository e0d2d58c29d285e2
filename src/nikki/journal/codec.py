"""Conversion between model dataclasses and JSON-safe storage records.

Records use the same field names as the dataclasses. Timestamps are written
with ``to_storage`` and rehydrated with ``from_storage`` on every read,
including the nested ``emotion_analysis.analyzed_at`` and each
``ai_conversations[].timestamp``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..core.types import Record
from .models import (
    AIConversation,
    EmotionAnalysis,
    EmotionScores,
    JournalEntry,
    MonthlySummary,
    WeeklySummary,
)
from .timeutil import from_storage, to_storage


def dumps(record: Record) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def loads(payload: str) -> Record:
    return json.loads(payload)


# -- nested values ----------------------------------------------------------


def conversation_to_record(conv: AIConversation) -> Record:
    return {
        "id": conv.id,
        "timestamp": to_storage(conv.timestamp),
        "role": conv.role.value,
        "message": conv.message,
    }


def conversation_from_record(data: Record) -> AIConversation:
    return AIConversation(
        id=data["id"],
        timestamp=from_storage(data["timestamp"]),
        role=data["role"],
        message=data.get("message", ""),
    )


def emotion_to_record(analysis: EmotionAnalysis | None) -> Record | None:
    if analysis is None:
        return None
    e = analysis.emotions
    return {
        "positive": analysis.positive,
        "negative": analysis.negative,
        "emotions": {
            "joy": e.joy,
            "sadness": e.sadness,
            "anger": e.anger,
            "fear": e.fear,
            "surprise": e.surprise,
        },
        "analyzed_at": to_storage(analysis.analyzed_at),
    }


def emotion_from_record(data: Record | None) -> EmotionAnalysis | None:
    if data is None:
        return None
    return EmotionAnalysis(
        positive=data["positive"],
        negative=data["negative"],
        emotions=EmotionScores(**data.get("emotions", {})),
        analyzed_at=from_storage(data["analyzed_at"]),
    )


# -- caller-supplied values -------------------------------------------------


def as_conversation(value: AIConversation | Mapping[str, Any]) -> AIConversation:
    """Accept an ``AIConversation`` or its record form (as found in plain-dict drafts and patches).

    Raises:
        ValueError: If a mapping is missing fields or holds a bad timestamp or role.
    """
    if isinstance(value, AIConversation):
        return value
    if isinstance(value, Mapping):
        try:
            return conversation_from_record(dict(value))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid AI conversation: {value!r}") from e
    raise ValueError(f"Invalid AI conversation: {value!r}")


def as_emotion_analysis(value: EmotionAnalysis | Mapping[str, Any] | None) -> EmotionAnalysis | None:
    """Accept an ``EmotionAnalysis``, its record form, or None.

    Raises:
        ValueError: If a mapping is missing fields or holds a bad timestamp.
    """
    if value is None or isinstance(value, EmotionAnalysis):
        return value
    if isinstance(value, Mapping):
        try:
            return emotion_from_record(dict(value))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid emotion analysis: {value!r}") from e
    raise ValueError(f"Invalid emotion analysis: {value!r}")


# -- entries ----------------------------------------------------------------


def entry_to_record(entry: JournalEntry) -> Record:
    return {
        "id": entry.id,
        "created_at": to_storage(entry.created_at),
        "updated_at": to_storage(entry.updated_at),
        "content": entry.content,
        "tags": list(entry.tags),
        "category": entry.category.value,
        "images": list(entry.images),
        "ai_conversations": [conversation_to_record(c) for c in entry.ai_conversations],
        "emotion_analysis": emotion_to_record(entry.emotion_analysis),
    }


def entry_from_record(data: Record) -> JournalEntry:
    """Build a JournalEntry from a stored record, rehydrating all timestamps."""
    return JournalEntry(
        id=data["id"],
        created_at=from_storage(data["created_at"]),
        updated_at=from_storage(data["updated_at"]),
        content=data.get("content", ""),
        tags=list(data.get("tags") or []),
        category=data["category"],
        images=list(data.get("images") or []),
        ai_conversations=[conversation_from_record(c) for c in data.get("ai_conversations") or []],
        emotion_analysis=emotion_from_record(data.get("emotion_analysis")),
    )


# -- summaries --------------------------------------------------------------


def weekly_to_record(summary: WeeklySummary) -> Record:
    return {
        "id": summary.id,
        "week_start": to_storage(summary.week_start),
        "week_end": to_storage(summary.week_end),
        "summary": summary.summary,
        "themes": list(summary.themes),
        "emotion_trend": emotion_to_record(summary.emotion_trend),
        "generated_at": to_storage(summary.generated_at),
    }


def weekly_from_record(data: Record) -> WeeklySummary:
    return WeeklySummary(
        id=data["id"],
        week_start=from_storage(data["week_start"]),
        week_end=from_storage(data["week_end"]),
        summary=data.get("summary", ""),
        themes=list(data.get("themes") or []),
        emotion_trend=emotion_from_record(data["emotion_trend"]),
        generated_at=from_storage(data["generated_at"]),
    )


def monthly_to_record(summary: MonthlySummary) -> Record:
    return {
        "id": summary.id,
        "month": summary.month,
        "summary": summary.summary,
        "themes": list(summary.themes),
        "emotion_trend": emotion_to_record(summary.emotion_trend),
        "generated_at": to_storage(summary.generated_at),
    }


def monthly_from_record(data: Record) -> MonthlySummary:
    return MonthlySummary(
        id=data["id"],
        month=data["month"],
        summary=data.get("summary", ""),
        themes=list(data.get("themes") or []),
        emotion_trend=emotion_from_record(data["emotion_trend"]),
        generated_at=from_storage(data["generated_at"]),
    )
