"""本地提醒数据模型。"""
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from pill_reminder.config import REMINDER_BODY, REMINDER_TITLE


class ReminderContent(BaseModel):
    """通知展示内容。"""
    title: str = Field(REMINDER_TITLE, description="标题")
    body: str = Field(REMINDER_BODY, description="正文")
    data: Dict[str, Any] = Field(default_factory=dict, description="附带数据")


class ScheduledReminder(BaseModel):
    """一条待触发的本地提醒；以日期键作为通知 ID，便于单独取消。"""
    day_key: str = Field(..., description="哪一天的提醒，同时是通知 ID")
    firing_moment: datetime = Field(..., description="触发时刻（带时区）")
    content: ReminderContent = Field(default_factory=ReminderContent)


class ScheduleReport(BaseModel):
    """一次排期的结果：失败不抛出，记在 errors 里交给调用方处理。"""
    permitted: bool = Field(True, description="是否拿到通知权限")
    scheduled: List[ScheduledReminder] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.permitted and not self.errors
