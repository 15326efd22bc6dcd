"""每日记录存储：按日期键读写 daily_log 集合。"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pill_reminder.config import DAILY_LOG_COLLECTION
from pill_reminder.dates import TimezoneLike, day_key_of, parse_day_key, recent_day_keys, to_local
from pill_reminder.records.models import DailyRecord
from pill_reminder.storage import ConflictError, DocumentStore

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class DailyRecordStore:
    """DailyRecord 的薄封装：读、写、删、订阅，都按日期键。"""

    def __init__(self, documents: DocumentStore, collection: str = DAILY_LOG_COLLECTION):
        self.documents = documents
        self.collection = collection

    def get(self, day_key: str) -> Optional[DailyRecord]:
        parse_day_key(day_key)
        data = self.documents.get(self.collection, day_key)
        if data is None:
            return None
        return DailyRecord.model_validate({**data, "day_key": day_key})

    def get_or_default(self, day_key: str) -> DailyRecord:
        """不存在时返回未服药、未告警的空记录（不落盘）。"""
        return self.get(day_key) or DailyRecord.empty(day_key)

    def save(self, record: DailyRecord) -> DailyRecord:
        record.updated_at = _utc_now_iso()
        self.documents.set(self.collection, record.day_key, record.model_dump(mode="json"))
        logger.info("记录已保存: %s taken=%s", record.day_key, record.taken)
        return record

    def delete(self, day_key: str) -> None:
        parse_day_key(day_key)
        self.documents.delete(self.collection, day_key)
        logger.info("记录已删除: %s", day_key)

    def watch(
        self,
        day_key: str,
        callback: Callable[[Optional[DailyRecord]], None],
    ) -> Callable[[], None]:
        """订阅某天的记录，返回取消订阅函数。"""
        parse_day_key(day_key)

        def on_change(data: Optional[dict]) -> None:
            callback(DailyRecord.model_validate({**data, "day_key": day_key}) if data else None)

        return self.documents.subscribe(self.collection, day_key, on_change)

    def mark_alert_sent(self, day_key: str, at: Optional[datetime] = None) -> DailyRecord:
        """把 alert_sent 置为 True（记录不存在则创建）。

        条件写：只在 alert_sent 仍是读到的旧值时写入；已被别处标记过则抛 ConflictError。
        """
        parse_day_key(day_key)
        stamp = to_local(at).isoformat() if at else datetime.now(timezone.utc).isoformat()
        for _ in range(2):
            current = self.documents.get(self.collection, day_key)
            if current and current.get("alert_sent"):
                raise ConflictError(f"{day_key} 已被标记为已告警")
            fields = {
                "day_key": day_key,
                "alert_sent": True,
                "alert_sent_at": stamp,
                "updated_at": _utc_now_iso(),
            }
            if current is None:
                fields["taken"] = False
            expected = {"alert_sent": current.get("alert_sent") if current else None}
            try:
                merged = self.documents.update(self.collection, day_key, fields, expected=expected)
            except ConflictError:
                # 读与写之间文档被改过，重读一次
                continue
            return DailyRecord.model_validate(merged)
        raise ConflictError(f"{day_key} 标记告警时并发冲突")

    def recent(self, now: datetime, days: int, tz: Optional[TimezoneLike] = None) -> List[DailyRecord]:
        """最近 days 个本地日里存在的记录，今天在前。"""
        out = []
        for key in recent_day_keys(now, days, tz):
            record = self.get(key)
            if record:
                out.append(record)
        return out

    def today(self, now: datetime, tz: Optional[TimezoneLike] = None) -> DailyRecord:
        return self.get_or_default(day_key_of(now, tz))
