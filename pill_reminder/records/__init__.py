"""每日服药记录。"""
from pill_reminder.records.intake import IntakeService
from pill_reminder.records.models import DailyRecord, Observation, PillVariant
from pill_reminder.records.store import DailyRecordStore

__all__ = [
    "IntakeService",
    "DailyRecord",
    "Observation",
    "PillVariant",
    "DailyRecordStore",
]
