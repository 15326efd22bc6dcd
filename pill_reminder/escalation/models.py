"""告警检查结果。"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EscalationOutcome(str, Enum):
    NO_ACTION_NEEDED = "no_action_needed"
    ESCALATED = "escalated"


class DeliveryAttempt(BaseModel):
    """对单个提醒方的一次推送尝试。"""
    user_id: str
    success: bool
    error: Optional[str] = None


class EscalationResult(BaseModel):
    outcome: EscalationOutcome
    day_key: str
    reason: Optional[str] = Field(None, description="无需处理的原因")
    success_count: int = 0
    recipients: List[str] = Field(default_factory=list, description="推送成功的用户 ID")
    attempts: List[DeliveryAttempt] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def no_action(cls, day_key: str, reason: str) -> "EscalationResult":
        return cls(outcome=EscalationOutcome.NO_ACTION_NEEDED, day_key=day_key, reason=reason)

    @classmethod
    def escalated(cls, day_key: str, attempts: List[DeliveryAttempt]) -> "EscalationResult":
        recipients = [a.user_id for a in attempts if a.success]
        return cls(
            outcome=EscalationOutcome.ESCALATED,
            day_key=day_key,
            success_count=len(recipients),
            recipients=recipients,
            attempts=attempts,
        )
