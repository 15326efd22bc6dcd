"""Expo 推送客户端测试（不发真实请求）。"""
import pytest
import requests

from pill_reminder.push import ExpoPushClient, PushDeliveryError, PushMessage


class FakeResponse:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error: Exception = None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def _message() -> PushMessage:
    return PushMessage(to="ExponentPushToken[abc]", title="t", body="b", data={"date": "2024-01-15"})


def test_token_format() -> None:
    assert ExpoPushClient.is_valid_token("ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]")
    assert ExpoPushClient.is_valid_token("ExpoPushToken[abc]")
    assert not ExpoPushClient.is_valid_token(None)
    assert not ExpoPushClient.is_valid_token("")
    assert not ExpoPushClient.is_valid_token("abc")
    assert not ExpoPushClient.is_valid_token("ExponentPushToken[]")


def test_send_ok() -> None:
    session = FakeSession(FakeResponse(200, {"data": {"status": "ok", "id": "ticket-1"}}))
    client = ExpoPushClient(session=session, url="https://push.test/send", access_token="secret")
    result = client.send(_message())
    assert result.success is True
    assert result.provider_response["data"]["id"] == "ticket-1"
    (call,) = session.calls
    assert call["url"] == "https://push.test/send"
    assert call["json"]["to"] == "ExponentPushToken[abc]"
    assert call["json"]["sound"] == "default"
    assert call["json"]["priority"] == "high"
    assert call["headers"]["Authorization"] == "Bearer secret"


def test_error_ticket_is_unsuccessful() -> None:
    payload = {"data": {"status": "error", "message": "not registered", "details": {"error": "DeviceNotRegistered"}}}
    client = ExpoPushClient(session=FakeSession(FakeResponse(200, payload)))
    result = client.send(_message())
    assert result.success is False
    assert result.error == "not registered"


@pytest.mark.parametrize("payload", [["unexpected"], "ok", {"data": "x"}, {"data": [42]}])
def test_malformed_2xx_body_raises(payload) -> None:
    client = ExpoPushClient(session=FakeSession(FakeResponse(200, payload)))
    with pytest.raises(PushDeliveryError):
        client.send(_message())


def test_non_2xx_raises() -> None:
    client = ExpoPushClient(session=FakeSession(FakeResponse(500, {"errors": ["boom"]})))
    with pytest.raises(PushDeliveryError):
        client.send(_message())


def test_network_error_raises() -> None:
    client = ExpoPushClient(session=FakeSession(error=requests.ConnectionError("offline")))
    with pytest.raises(PushDeliveryError):
        client.send(_message())
