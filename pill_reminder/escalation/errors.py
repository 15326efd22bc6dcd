"""告警检查失败类型：都不会标记 alert_sent，下次触发可重试。"""
from typing import List, Optional

from pill_reminder.escalation.models import DeliveryAttempt


class EscalationError(Exception):
    """告警失败基类。"""

    def __init__(self, message: str, day_key: Optional[str] = None):
        super().__init__(message)
        self.day_key = day_key


class NoRecipientConfigured(EscalationError):
    """没有任何提醒方登记。"""


class NoValidRecipientToken(EscalationError):
    """提醒方都没有可用的推送 token。"""


class DeliveryFailed(EscalationError):
    """所有推送都失败了。"""

    def __init__(self, message: str, day_key: Optional[str] = None, attempts: Optional[List[DeliveryAttempt]] = None):
        super().__init__(message, day_key)
        self.attempts = attempts or []
