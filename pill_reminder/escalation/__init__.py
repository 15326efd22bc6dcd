"""未服药告警。"""
from pill_reminder.escalation.engine import EscalationEngine, RecipientLookup
from pill_reminder.escalation.errors import (
    DeliveryFailed,
    EscalationError,
    NoRecipientConfigured,
    NoValidRecipientToken,
)
from pill_reminder.escalation.models import DeliveryAttempt, EscalationOutcome, EscalationResult

__all__ = [
    "EscalationEngine",
    "RecipientLookup",
    "DeliveryFailed",
    "EscalationError",
    "NoRecipientConfigured",
    "NoValidRecipientToken",
    "DeliveryAttempt",
    "EscalationOutcome",
    "EscalationResult",
]
