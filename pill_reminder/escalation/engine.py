"""每日告警检查：今天没确认吃药就给提醒方推送，每天至多一次。

每天由外部定时器在固定时刻触发一次。状态只看当天记录的 taken / alert_sent：
  未确认且未告警 → 推送成功后标记为已告警；推送全部失败则保持原状，下次触发重试
  已确认 / 已告警 → 什么也不做（重复触发也安全）
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from pill_reminder.config import ALERT_BODY_TEMPLATE, ALERT_KIND, ALERT_TITLE
from pill_reminder.dates import TimezoneLike, day_key_of, get_timezone
from pill_reminder.escalation.errors import DeliveryFailed, NoRecipientConfigured, NoValidRecipientToken
from pill_reminder.escalation.models import DeliveryAttempt, EscalationResult
from pill_reminder.push import ExpoPushClient, PushDeliveryError, PushMessage
from pill_reminder.records.store import DailyRecordStore
from pill_reminder.storage import ConflictError
from pill_reminder.users.models import DeviceRegistration

logger = logging.getLogger(__name__)

RecipientLookup = Callable[[], List[DeviceRegistration]]


class EscalationEngine:
    """读当天记录 → 判断 → 推送 → 写回 alert_sent。"""

    def __init__(
        self,
        records: DailyRecordStore,
        transport: Optional[ExpoPushClient] = None,
        tz: Optional[TimezoneLike] = None,
    ):
        self.records = records
        self.transport = transport or ExpoPushClient()
        self.tz = get_timezone(tz)

    def build_message(self, token: str, day_key: str) -> PushMessage:
        return PushMessage(
            to=token,
            title=ALERT_TITLE,
            body=ALERT_BODY_TEMPLATE.format(day_key=day_key),
            data={"date": day_key, "kind": ALERT_KIND},
        )

    def evaluate_and_escalate(self, now: datetime, recipient_lookup: RecipientLookup) -> EscalationResult:
        """检查 now 所在本地日，必要时告警。

        失败抛 NoRecipientConfigured / NoValidRecipientToken / DeliveryFailed，
        存储读写失败直接向上抛出。
        """
        day_key = day_key_of(now, self.tz)
        record = self.records.get_or_default(day_key)
        logger.info("检查 %s: taken=%s alert_sent=%s", day_key, record.taken, record.alert_sent)

        if record.taken:
            return EscalationResult.no_action(day_key, "already taken")
        if record.alert_sent:
            return EscalationResult.no_action(day_key, "already alerted")

        registrations = recipient_lookup()
        if not registrations:
            raise NoRecipientConfigured("没有登记提醒方", day_key)

        usable = []
        for reg in registrations:
            if not self.transport.is_valid_token(reg.push_token):
                logger.warning("提醒方 %s 没有可用的推送 token，跳过", reg.user_id)
                continue
            usable.append(reg)
        if not usable:
            raise NoValidRecipientToken("提醒方都没有可用的推送 token", day_key)

        attempts = [self._deliver(reg, day_key) for reg in usable]
        if not any(a.success for a in attempts):
            # 全部失败：不标记，下次触发还能重试
            raise DeliveryFailed(f"{day_key} 推送全部失败（{len(attempts)} 个提醒方）", day_key, attempts)

        try:
            self.records.mark_alert_sent(day_key, now)
        except ConflictError as e:
            logger.warning("标记已告警时发现并发修改: %s", e)
        result = EscalationResult.escalated(day_key, attempts)
        logger.info("%s 已告警: %d/%d 个提醒方推送成功", day_key, result.success_count, len(attempts))
        return result

    def _deliver(self, reg: DeviceRegistration, day_key: str) -> DeliveryAttempt:
        """单个提醒方的推送；失败只记录，不影响其他人。"""
        message = self.build_message(reg.push_token.strip(), day_key)
        try:
            result = self.transport.send(message)
        except PushDeliveryError as e:
            logger.warning("推送给 %s 失败: %s", reg.user_id, e)
            return DeliveryAttempt(user_id=reg.user_id, success=False, error=str(e))
        except Exception as e:
            logger.exception("推送给 %s 时出现异常", reg.user_id)
            return DeliveryAttempt(user_id=reg.user_id, success=False, error=f"{type(e).__name__}: {e}")
        if not result.success:
            logger.warning("推送给 %s 被拒绝: %s", reg.user_id, result.error)
            return DeliveryAttempt(user_id=reg.user_id, success=False, error=result.error)
        return DeliveryAttempt(user_id=reg.user_id, success=True)
