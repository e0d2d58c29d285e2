"""Tests for nikki.journal.codec."""

from datetime import UTC, datetime

from nikki.journal.codec import dumps, entry_from_record, entry_to_record, loads
from nikki.journal.models import AIConversation, Category, EmotionAnalysis, EmotionScores, JournalEntry


def _record(**overrides):
    record = {
        "id": "e1",
        "created_at": "2025-01-10T00:00:00.000000+00:00",
        "updated_at": "2025-01-10T00:00:00.000000+00:00",
        "content": "本文",
        "tags": ["仕事"],
        "category": "仕事",
        "images": [],
        "ai_conversations": [],
        "emotion_analysis": None,
    }
    record.update(overrides)
    return record


class TestEntryRecords:
    def test_rehydrates_top_level_timestamps(self):
        entry = entry_from_record(_record())
        assert entry.created_at == datetime(2025, 1, 10, tzinfo=UTC)
        assert entry.category is Category.WORK

    def test_rehydrates_epoch_millis(self):
        entry = entry_from_record(_record(created_at=1736467200000, updated_at=1736467200000))
        assert entry.created_at == datetime(2025, 1, 10, tzinfo=UTC)

    def test_rehydrates_nested_timestamps(self):
        entry = entry_from_record(
            _record(
                ai_conversations=[{"id": "c1", "timestamp": "2025-01-10T08:00:00Z", "role": "ai", "message": "hi"}],
                emotion_analysis={
                    "positive": 70,
                    "negative": 5,
                    "emotions": {"joy": 60},
                    "analyzed_at": 1736467200000,
                },
            )
        )
        assert entry.ai_conversations[0].timestamp == datetime(2025, 1, 10, 8, tzinfo=UTC)
        assert entry.emotion_analysis.analyzed_at == datetime(2025, 1, 10, tzinfo=UTC)
        assert entry.emotion_analysis.emotions == EmotionScores(joy=60)

    def test_missing_optional_fields(self):
        record = _record()
        for key in ("tags", "images", "ai_conversations", "emotion_analysis"):
            del record[key]
        entry = entry_from_record(record)
        assert entry.tags == []
        assert entry.emotion_analysis is None

    def test_record_is_json_safe(self):
        now = datetime(2025, 1, 10, 12, 0, 0, 1, tzinfo=UTC)
        entry = JournalEntry(
            id="e1",
            created_at=now,
            updated_at=now,
            content="日本語",
            category=Category.STUDY,
            ai_conversations=[AIConversation(id="c", timestamp=now, role="user", message="質問")],
            emotion_analysis=EmotionAnalysis(positive=1, negative=2, emotions=EmotionScores(), analyzed_at=now),
        )
        payload = dumps(entry_to_record(entry))
        assert "日本語" in payload
        assert entry_from_record(loads(payload)) == entry

    def test_record_does_not_alias_entry(self):
        now = datetime(2025, 1, 10, tzinfo=UTC)
        entry = JournalEntry(id="e1", created_at=now, updated_at=now, content="", category="その他", tags=["a"])
        record = entry_to_record(entry)
        record["tags"].append("b")
        assert entry.tags == ["a"]
