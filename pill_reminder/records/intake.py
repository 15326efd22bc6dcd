"""服药方流程：确认吃药、撤销、重排本地提醒、查看历史。"""
import logging
from datetime import datetime, time
from typing import Iterable, List, Optional

from pill_reminder.config import HISTORY_DAYS, REMINDER_HOUR, REMINDER_MINUTE, SCHEDULE_WINDOW_DAYS
from pill_reminder.dates import TimezoneLike, day_key_of, get_timezone, time_of_day
from pill_reminder.notifications import NotificationError, ReminderScheduler, ScheduleReport
from pill_reminder.records.models import DailyRecord, Observation, PillVariant
from pill_reminder.records.store import DailyRecordStore

logger = logging.getLogger(__name__)


class IntakeService:
    """服药方在本机上的操作。提醒排期失败只记日志，远程告警兜底。"""

    def __init__(
        self,
        records: DailyRecordStore,
        scheduler: ReminderScheduler,
        tz: Optional[TimezoneLike] = None,
        window_days: int = SCHEDULE_WINDOW_DAYS,
        cutoff: time = time(REMINDER_HOUR, REMINDER_MINUTE),
    ):
        self.records = records
        self.scheduler = scheduler
        self.tz = get_timezone(tz)
        self.window_days = window_days
        self.cutoff = cutoff

    def today(self, now: datetime) -> DailyRecord:
        return self.records.today(now, self.tz)

    def confirm_dose(
        self,
        now: datetime,
        variant: PillVariant = PillVariant.ACTIVE,
        notes: Iterable[Observation] = (),
    ) -> DailyRecord:
        """确认今天已吃药：写记录、取消今天的提醒、重排。"""
        current = self.today(now)
        record = DailyRecord(
            day_key=current.day_key,
            taken=True,
            taken_at=time_of_day(now, self.tz),
            alert_sent=current.alert_sent,
            alert_sent_at=current.alert_sent_at,
            variant=variant,
            notes=list(notes),
        )
        self.records.save(record)
        try:
            self.scheduler.cancel(record.day_key)
        except NotificationError as e:
            logger.warning("取消今天的提醒失败: %s", e)
        self.sync_reminders(now)
        return record

    def undo(self, day_key: str, now: Optional[datetime] = None) -> None:
        """删除某天的记录；删的是今天则重新排期，让今天的提醒回来。"""
        self.records.delete(day_key)
        if now is not None and day_key == day_key_of(now, self.tz):
            self.sync_reminders(now)

    def sync_reminders(self, now: datetime) -> ScheduleReport:
        """按今天是否已服药全量重排本地提醒。"""
        satisfied = self.today(now).taken
        report = self.scheduler.schedule_window(self.window_days, self.cutoff, satisfied, now=now)
        if not report.permitted:
            logger.warning("本地提醒不可用（无权限），依赖远程告警")
        for err in report.errors:
            logger.warning("本地提醒排期出错: %s", err)
        return report

    def history(self, now: datetime, days: int = HISTORY_DAYS) -> List[DailyRecord]:
        return self.records.recent(now, days, self.tz)
