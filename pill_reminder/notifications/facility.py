"""系统本地通知设施：按 ID 定时、取消；这里用 JSON 文件保存待触发列表。"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pill_reminder.config import NOTIFICATIONS_DIR, ensure_dirs
from pill_reminder.dates import to_local
from pill_reminder.notifications.models import ReminderContent, ScheduledReminder

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """定时或取消通知失败。"""


class NotificationPermissionError(NotificationError):
    """没有通知权限。"""


class LocalNotificationFacility:
    """本地通知设施接口。"""

    def request_permission(self) -> bool:
        raise NotImplementedError

    def schedule_at(self, notification_id: str, firing_moment: datetime, content: ReminderContent) -> None:
        raise NotImplementedError

    def cancel(self, notification_id: str) -> None:
        raise NotImplementedError

    def cancel_all(self) -> None:
        raise NotImplementedError

    def pending(self) -> List[ScheduledReminder]:
        raise NotImplementedError


class FileNotificationFacility(LocalNotificationFacility):
    """待触发通知保存在 pending.json；同一 ID 再次定时会覆盖旧的。"""
    _filename = "pending.json"

    def __init__(self, data_dir: Optional[Path] = None, permission_granted: bool = True):
        self.data_dir = data_dir or NOTIFICATIONS_DIR
        self.permission_granted = permission_granted
        ensure_dirs()

    def _path(self) -> Path:
        return self.data_dir / self._filename

    def _load(self) -> List[ScheduledReminder]:
        if not self._path().exists():
            return []
        try:
            with open(self._path(), "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise NotificationError(f"读取待触发通知失败: {e}") from e
        return [ScheduledReminder.model_validate(item) for item in data.get("pending", [])]

    def _save(self, items: List[ScheduledReminder]) -> None:
        items = sorted(items, key=lambda r: r.firing_moment)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self._path(), "w", encoding="utf-8") as f:
                json.dump({"pending": [r.model_dump(mode="json") for r in items]}, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise NotificationError(f"保存待触发通知失败: {e}") from e

    def request_permission(self) -> bool:
        return self.permission_granted

    def schedule_at(self, notification_id: str, firing_moment: datetime, content: ReminderContent) -> None:
        if not self.permission_granted:
            raise NotificationPermissionError("通知权限被拒绝")
        items = [r for r in self._load() if r.day_key != notification_id]
        items.append(ScheduledReminder(day_key=notification_id, firing_moment=firing_moment, content=content))
        self._save(items)

    def cancel(self, notification_id: str) -> None:
        items = self._load()
        kept = [r for r in items if r.day_key != notification_id]
        if len(kept) != len(items):
            self._save(kept)

    def cancel_all(self) -> None:
        self._save([])

    def pending(self) -> List[ScheduledReminder]:
        return self._load()

    def pop_due(self, now: datetime) -> List[ScheduledReminder]:
        """取出已到点的通知（视为已送达并从待触发列表移除）。"""
        now = to_local(now)
        items = self._load()
        due = [r for r in items if r.firing_moment <= now]
        if due:
            self._save([r for r in items if r.firing_moment > now])
            logger.info("送达 %d 条本地提醒", len(due))
        return due
