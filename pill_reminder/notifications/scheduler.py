"""服药方本地提醒排期：每天固定时刻一条，滚动覆盖未来若干天。"""
import logging
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from pill_reminder.config import REMINDER_HOUR, REMINDER_MINUTE, SCHEDULE_WINDOW_DAYS
from pill_reminder.dates import TimezoneLike, day_key_for, get_timezone, local_now, moment_on, to_local
from pill_reminder.notifications.facility import LocalNotificationFacility, NotificationError
from pill_reminder.notifications.models import ReminderContent, ScheduledReminder, ScheduleReport

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF = time(REMINDER_HOUR, REMINDER_MINUTE)


class ReminderScheduler:
    """维护待触发提醒集合：每个日期键至多一条，且触发时刻都在未来。

    schedule_window 是破坏性的全量重排（先清空再排），不是增量追加；
    应用回到前台、登录、确认服药之后都应重新调用。调用方负责串行化。
    """

    def __init__(
        self,
        facility: LocalNotificationFacility,
        tz: Optional[TimezoneLike] = None,
        clock: Optional[Callable[[], datetime]] = None,
        content: Optional[ReminderContent] = None,
    ):
        self.facility = facility
        self.tz = get_timezone(tz)
        self._clock = clock or (lambda: local_now(self.tz))
        self.content = content or ReminderContent()

    def schedule_window(
        self,
        window_days: int = SCHEDULE_WINDOW_DAYS,
        cutoff: time = DEFAULT_CUTOFF,
        today_already_satisfied: bool = False,
        now: Optional[datetime] = None,
    ) -> ScheduleReport:
        """清空旧提醒，再为今天起 window_days 天各排一条 cutoff 时刻的提醒。

        今天已服药则跳过今天；不晚于 now 的时刻一律跳过。now 缺省取时钟当前时间。
        """
        if window_days < 1:
            raise ValueError(f"window_days 至少为 1: {window_days}")
        report = ScheduleReport()
        # 无论有没有权限都先清空，旧的过期提醒不能留下
        try:
            self.facility.cancel_all()
        except NotificationError as e:
            logger.warning("清空旧提醒失败: %s", e)
            report.errors.append(f"cancel_all: {e}")

        if not self.facility.request_permission():
            logger.warning("没有通知权限，跳过本地提醒排期")
            report.permitted = False
            return report

        now = to_local(now or self._clock(), self.tz)
        today = now.date()
        for i in range(window_days):
            if i == 0 and today_already_satisfied:
                continue
            day = today + timedelta(days=i)
            moment = moment_on(day, cutoff, self.tz)
            if moment <= now:
                continue
            day_key = day_key_for(day)
            content = self.content.model_copy(update={"data": {**self.content.data, "date": day_key}})
            try:
                self.facility.schedule_at(day_key, moment, content)
            except NotificationError as e:
                logger.warning("排期提醒失败 %s: %s", day_key, e)
                report.errors.append(f"{day_key}: {e}")
                continue
            report.scheduled.append(ScheduledReminder(day_key=day_key, firing_moment=moment, content=content))

        logger.info(
            "本地提醒已排期 %d 条（%s 起 %d 天，%s）",
            len(report.scheduled),
            day_key_for(today),
            window_days,
            cutoff.strftime("%H:%M"),
        )
        return report

    def cancel(self, day_key: str) -> None:
        """取消某天的提醒；不存在则什么也不做。失败抛 NotificationError。"""
        self.facility.cancel(day_key)
        logger.info("已取消 %s 的本地提醒", day_key)

    def cancel_all(self) -> None:
        """清空全部提醒（切换角色或退出登录时）。"""
        self.facility.cancel_all()
        logger.info("已取消全部本地提醒")
