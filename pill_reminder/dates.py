"""日期键与时间字符串：调度器与告警检查共用的唯一「今天」算法。

一律按本地日历字段计算（显式时区），不要用 UTC ISO 字符串截断，
否则在午夜附近两种算法会得出不同的「今天」。
"""
import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from pill_reminder.config import TIMEZONE

DAY_KEY_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

TimezoneLike = Union[str, tzinfo]

_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def get_timezone(tz: Optional[TimezoneLike] = None) -> tzinfo:
    """返回时区对象；未指定时使用配置的 TIMEZONE。"""
    if tz is None:
        return ZoneInfo(TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def to_local(instant: datetime, tz: Optional[TimezoneLike] = None) -> datetime:
    """转为本地时间。无时区的 datetime 视为该时区的本地挂钟时间。"""
    zone = get_timezone(tz)
    if instant.tzinfo is None:
        return instant.replace(tzinfo=zone)
    return instant.astimezone(zone)


def local_now(tz: Optional[TimezoneLike] = None) -> datetime:
    return datetime.now(get_timezone(tz))


def day_key_of(instant: datetime, tz: Optional[TimezoneLike] = None) -> str:
    """时间点 → 本地日历日 YYYY-MM-DD。"""
    return to_local(instant, tz).strftime(DAY_KEY_FORMAT)


def time_of_day(instant: datetime, tz: Optional[TimezoneLike] = None) -> str:
    """时间点 → 本地 HH:MM。"""
    return to_local(instant, tz).strftime(TIME_FORMAT)


def is_valid_day_key(value: str) -> bool:
    if not isinstance(value, str) or not _DAY_KEY_RE.match(value):
        return False
    try:
        datetime.strptime(value, DAY_KEY_FORMAT)
    except ValueError:
        return False
    return True


def is_valid_time_string(value: str) -> bool:
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def parse_day_key(day_key: str) -> date:
    """YYYY-MM-DD → date；格式不对抛 ValueError。"""
    if not is_valid_day_key(day_key):
        raise ValueError(f"非法日期键: {day_key!r}")
    return datetime.strptime(day_key, DAY_KEY_FORMAT).date()


def day_key_for(day: date) -> str:
    return day.strftime(DAY_KEY_FORMAT)


def moment_on(day: date, at: time, tz: Optional[TimezoneLike] = None) -> datetime:
    """某本地日期的 hh:mm 对应的带时区时间点。"""
    return datetime.combine(day, time(at.hour, at.minute), tzinfo=get_timezone(tz))


def is_past_day(day_key: str, now: datetime, tz: Optional[TimezoneLike] = None) -> bool:
    """日期键是否早于 now 所在的本地日。"""
    return parse_day_key(day_key) < to_local(now, tz).date()


def recent_day_keys(now: datetime, days: int, tz: Optional[TimezoneLike] = None) -> List[str]:
    """最近 days 个本地日的日期键，今天在前。"""
    today = to_local(now, tz).date()
    return [day_key_for(today - timedelta(days=i)) for i in range(days)]
