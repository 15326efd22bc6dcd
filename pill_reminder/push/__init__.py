"""远程推送。"""
from pill_reminder.push.expo import ExpoPushClient, PushDeliveryError
from pill_reminder.push.models import PushMessage, PushResult

__all__ = ["ExpoPushClient", "PushDeliveryError", "PushMessage", "PushResult"]
