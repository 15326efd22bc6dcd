"""文档存储测试。"""
import tempfile
from pathlib import Path

import pytest

from pill_reminder.storage import ConflictError, JsonDocumentStore


def test_set_get_delete() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JsonDocumentStore(base_dir=Path(tmp))
        assert store.get("daily_log", "2024-01-15") is None
        store.set("daily_log", "2024-01-15", {"taken": True, "taken_at": "19:30"})
        assert store.get("daily_log", "2024-01-15") == {"taken": True, "taken_at": "19:30"}
        store.delete("daily_log", "2024-01-15")
        assert store.get("daily_log", "2024-01-15") is None
        store.delete("daily_log", "2024-01-15")  # 不存在也不报错


def test_query_by_field() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JsonDocumentStore(base_dir=Path(tmp))
        store.set("users_config", "u1", {"role": "pill_taker"})
        store.set("users_config", "u2", {"role": "reminder_recipient"})
        store.set("users_config", "u3", {"role": "reminder_recipient"})
        rows = store.query("users_config", "role", "reminder_recipient")
        assert [key for key, _ in rows] == ["u2", "u3"]
        assert store.query("missing", "role", "x") == []


def test_update_merges_and_checks_expected() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JsonDocumentStore(base_dir=Path(tmp))
        merged = store.update("daily_log", "2024-01-15", {"alert_sent": True}, expected={"alert_sent": None})
        assert merged == {"alert_sent": True}
        with pytest.raises(ConflictError):
            store.update("daily_log", "2024-01-15", {"alert_sent": True}, expected={"alert_sent": False})
        merged = store.update("daily_log", "2024-01-15", {"taken": False})
        assert merged == {"alert_sent": True, "taken": False}


def test_subscribe_delivers_current_then_changes() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JsonDocumentStore(base_dir=Path(tmp))
        seen = []
        unsubscribe = store.subscribe("daily_log", "2024-01-15", seen.append)
        store.set("daily_log", "2024-01-15", {"taken": False})
        store.delete("daily_log", "2024-01-15")
        unsubscribe()
        store.set("daily_log", "2024-01-15", {"taken": True})
        assert seen == [None, {"taken": False}, None]


def test_rejects_path_like_keys() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JsonDocumentStore(base_dir=Path(tmp))
        with pytest.raises(ValueError):
            store.get("daily_log", "../secret")
