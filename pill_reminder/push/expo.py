"""Expo 推送接口：POST https://exp.host/--/api/v2/push/send。"""
import logging
import re
from typing import Optional

import requests

from pill_reminder.config import EXPO_ACCESS_TOKEN, EXPO_PUSH_URL, PUSH_TIMEOUT
from pill_reminder.push.models import PushMessage, PushResult

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[[^\[\]\s]+\]$")


class PushDeliveryError(Exception):
    """推送请求失败：网络异常或非 2xx 响应。"""


class ExpoPushClient:
    """Expo 推送客户端：一次发一条，返回推送票据。"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        url: str = EXPO_PUSH_URL,
        timeout: float = PUSH_TIMEOUT,
        access_token: Optional[str] = None,
    ):
        self.session = session or requests.Session()
        self.url = url
        self.timeout = timeout
        self.access_token = access_token or EXPO_ACCESS_TOKEN

    @staticmethod
    def is_valid_token(token: Optional[str]) -> bool:
        """是否为可用的 Expo 推送 token：ExponentPushToken[...] / ExpoPushToken[...]。"""
        return bool(token) and bool(_TOKEN_RE.match(token.strip()))

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def send(self, message: PushMessage) -> PushResult:
        """发送推送。网络异常、非 2xx 抛 PushDeliveryError；票据 status=error 返回 success=False。"""
        try:
            r = self.session.post(
                self.url,
                json=message.model_dump(exclude_none=True),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PushDeliveryError(f"请求失败: {e}") from e
        if not 200 <= r.status_code < 300:
            raise PushDeliveryError(f"HTTP {r.status_code}: {r.text[:200]}")
        try:
            payload = r.json()
        except ValueError as e:
            raise PushDeliveryError(f"响应非 JSON: {r.text[:200]}") from e
        if not isinstance(payload, dict):
            raise PushDeliveryError(f"响应格式异常: {r.text[:200]}")

        if payload.get("errors"):
            return PushResult(success=False, provider_response=payload, error=str(payload["errors"])[:200])
        ticket = payload.get("data")
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        ticket = ticket or {}
        if not isinstance(ticket, dict):
            raise PushDeliveryError(f"推送回执格式异常: {str(ticket)[:200]}")
        if ticket.get("status") == "error":
            return PushResult(success=False, provider_response=payload, error=ticket.get("message"))
        logger.info("推送已提交: %s", ticket.get("id"))
        return PushResult(success=True, provider_response=payload)
