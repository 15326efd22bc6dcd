"""每日记录模型与存储测试。"""
import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from pill_reminder.records import DailyRecord, DailyRecordStore, Observation, PillVariant
from pill_reminder.storage import ConflictError, JsonDocumentStore

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def _store(tmp: str) -> DailyRecordStore:
    return DailyRecordStore(JsonDocumentStore(base_dir=Path(tmp)))


def test_taken_at_present_iff_taken() -> None:
    DailyRecord(day_key="2024-01-15", taken=True, taken_at="19:30")
    DailyRecord(day_key="2024-01-15")
    with pytest.raises(ValidationError):
        DailyRecord(day_key="2024-01-15", taken=True)
    with pytest.raises(ValidationError):
        DailyRecord(day_key="2024-01-15", taken=False, taken_at="19:30")
    with pytest.raises(ValidationError):
        DailyRecord(day_key="15-01-2024")
    with pytest.raises(ValidationError):
        DailyRecord(day_key="2024-01-15", taken=True, taken_at="25:00")


def test_notes_are_deduplicated() -> None:
    record = DailyRecord(
        day_key="2024-01-15",
        notes=[Observation.CRAMPS, Observation.ACNE, Observation.CRAMPS],
    )
    assert record.notes == ["cramps", "acne"]


def test_absent_record_defaults() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = _store(tmp)
        assert store.get("2024-01-15") is None
        record = store.get_or_default("2024-01-15")
        assert record.taken is False
        assert record.alert_sent is False
        assert store.get("2024-01-15") is None  # 不落盘


def test_save_load_delete() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = _store(tmp)
        store.save(DailyRecord(
            day_key="2024-01-15",
            taken=True,
            taken_at="19:30",
            variant=PillVariant.PLACEBO,
            notes=[Observation.BLEEDING],
        ))
        loaded = store.get("2024-01-15")
        assert loaded is not None
        assert loaded.taken_at == "19:30"
        assert loaded.variant == PillVariant.PLACEBO
        assert loaded.notes == ["bleeding"]
        assert loaded.updated_at
        store.delete("2024-01-15")
        assert store.get("2024-01-15") is None


def test_mark_alert_sent_creates_record_once() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = _store(tmp)
        record = store.mark_alert_sent("2024-01-15", datetime(2024, 1, 15, 22, 0, tzinfo=SAO_PAULO))
        assert record.alert_sent is True
        assert record.taken is False
        assert record.alert_sent_at.startswith("2024-01-15T22:00")
        with pytest.raises(ConflictError):
            store.mark_alert_sent("2024-01-15")


def test_mark_alert_sent_stamps_naive_time_with_zone() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        record = _store(tmp).mark_alert_sent("2024-01-15", datetime(2024, 1, 15, 22, 0))
        stamped = datetime.fromisoformat(record.alert_sent_at)
        assert stamped.tzinfo is not None
        # 无时区的时间按本地挂钟时间解释
        assert record.alert_sent_at.startswith("2024-01-15T22:00")


def test_watch_receives_records() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = _store(tmp)
        seen = []
        unsubscribe = store.watch("2024-01-15", seen.append)
        store.save(DailyRecord(day_key="2024-01-15", taken=True, taken_at="08:00"))
        unsubscribe()
        assert seen[0] is None
        assert seen[1].taken is True


def test_recent_skips_missing_days() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = _store(tmp)
        store.save(DailyRecord(day_key="2024-01-15", taken=True, taken_at="08:00"))
        store.save(DailyRecord(day_key="2024-01-13", alert_sent=True))
        store.save(DailyRecord(day_key="2024-01-01", taken=True, taken_at="08:00"))
        now = datetime(2024, 1, 15, 12, 0, tzinfo=SAO_PAULO)
        keys = [r.day_key for r in store.recent(now, 7, SAO_PAULO)]
        assert keys == ["2024-01-15", "2024-01-13"]
