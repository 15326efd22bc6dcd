"""定时器入口与命令行解析测试。"""
import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from pill_reminder.config import DAILY_LOG_COLLECTION, EVALUATION_CRON
from pill_reminder.escalation import EscalationOutcome, NoRecipientConfigured
from pill_reminder.main import build_parser, check_now, daily_pill_reminder
from pill_reminder.push import ExpoPushClient, PushResult
from pill_reminder.storage import JsonDocumentStore
from pill_reminder.users import UserConfig, UserConfigStore, UserRole

NOW = datetime(2024, 1, 15, 22, 0, tzinfo=ZoneInfo("America/Sao_Paulo"))


class RecordingTransport:
    is_valid_token = staticmethod(ExpoPushClient.is_valid_token)

    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)
        return PushResult(success=True)


def test_daily_trigger_alerts_configured_recipient() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        documents = JsonDocumentStore(base_dir=Path(tmp))
        users = UserConfigStore(documents)
        users.save(UserConfig(user_id="gf", role=UserRole.PILL_TAKER))
        users.save(UserConfig(user_id="bf", role=UserRole.REMINDER_RECIPIENT, push_token="ExponentPushToken[bf]"))
        transport = RecordingTransport()

        result = daily_pill_reminder(NOW, documents, transport)
        assert result.outcome == EscalationOutcome.ESCALATED
        assert result.recipients == ["bf"]
        # 定时器重复触发：不会再推送
        again = daily_pill_reminder(NOW, documents, transport)
        assert again.outcome == EscalationOutcome.NO_ACTION_NEEDED
        assert len(transport.sent) == 1


def test_daily_trigger_reraises_failures() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        documents = JsonDocumentStore(base_dir=Path(tmp))
        with pytest.raises(NoRecipientConfigured):
            daily_pill_reminder(NOW, documents, RecordingTransport())


def test_check_now_summarises() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        documents = JsonDocumentStore(base_dir=Path(tmp))
        summary = check_now(NOW, documents, RecordingTransport())
        assert summary["success"] is False
        assert summary["day_key"] == "2024-01-15"

        UserConfigStore(documents).save(
            UserConfig(user_id="bf", role=UserRole.REMINDER_RECIPIENT, push_token="ExpoPushToken[bf]")
        )
        summary = check_now(NOW, documents, RecordingTransport())
        assert summary["success"] is True
        assert summary["data"]["outcome"] == "escalated"


def test_check_now_reports_malformed_record() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        documents = JsonDocumentStore(base_dir=Path(tmp))
        UserConfigStore(documents).save(
            UserConfig(user_id="bf", role=UserRole.REMINDER_RECIPIENT, push_token="ExpoPushToken[bf]")
        )
        # 已服药却没有 taken_at，读取时校验失败
        documents.set(DAILY_LOG_COLLECTION, "2024-01-15", {"day_key": "2024-01-15", "taken": True})
        transport = RecordingTransport()
        summary = check_now(NOW, documents, transport)
        assert summary["success"] is False
        assert summary["error"]
        assert transport.sent == []


def test_escalate_help_names_schedule() -> None:
    help_text = build_parser().format_help()
    assert EVALUATION_CRON in help_text


def test_parser() -> None:
    parser = build_parser()
    args = parser.parse_args(["--now", "2024-01-15T22:00", "confirm", "--placebo", "--note", "acne"])
    assert args.command == "confirm"
    assert args.placebo is True
    assert args.note == ["acne"]
    args = parser.parse_args(["register", "--role", "reminder_recipient", "--token", "ExpoPushToken[x]"])
    assert args.role == "reminder_recipient"
    with pytest.raises(SystemExit):
        parser.parse_args(["register", "--role", "boss"])
