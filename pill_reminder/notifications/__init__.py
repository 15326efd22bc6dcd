"""服药方本地提醒。"""
from pill_reminder.notifications.facility import (
    FileNotificationFacility,
    LocalNotificationFacility,
    NotificationError,
    NotificationPermissionError,
)
from pill_reminder.notifications.models import ReminderContent, ScheduledReminder, ScheduleReport
from pill_reminder.notifications.scheduler import ReminderScheduler

__all__ = [
    "FileNotificationFacility",
    "LocalNotificationFacility",
    "NotificationError",
    "NotificationPermissionError",
    "ReminderContent",
    "ScheduledReminder",
    "ScheduleReport",
    "ReminderScheduler",
]
