import json

import httpx
import pytest

from support_chat.src.clients import webhook
from support_chat.src.errors import WebhookUnavailable


class _Resp:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class _Client:
    def __init__(self, resp):
        self.resp = resp
        self.calls = []

    async def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.resp, Exception):
            raise self.resp
        return self.resp


PAYLOAD = {"conversationId": "conv_1", "query": "hi", "language": "es"}


@pytest.mark.asyncio
async def test_send_query_posts_once_with_bearer_token():
    client = _Client(_Resp(200, '{"ok": true}'))

    result = await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", token="n8n-token", client=client)

    assert result == {"ok": True}
    assert len(client.calls) == 1
    url, kwargs = client.calls[0]
    assert url == "http://n8n.test/hook"
    assert kwargs["json"] == PAYLOAD
    assert kwargs["headers"]["Authorization"] == "Bearer n8n-token"
    assert kwargs["headers"]["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_send_query_without_token_has_no_authorization():
    client = _Client(_Resp(200, ""))

    result = await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", token="", client=client)

    assert result == {}
    assert "Authorization" not in client.calls[0][1]["headers"]


@pytest.mark.asyncio
async def test_non_object_body_is_ignored():
    client = _Client(_Resp(200, "Workflow was started"))
    assert await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", client=client) == {}

    client = _Client(_Resp(200, "[1, 2]"))
    assert await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", client=client) == {}


@pytest.mark.asyncio
async def test_http_error_is_webhook_unavailable_without_retry():
    client = _Client(_Resp(500, "boom"))

    with pytest.raises(WebhookUnavailable) as exc_info:
        await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", client=client)

    assert exc_info.value.status_code == 500
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_transport_error_is_webhook_unavailable():
    client = _Client(httpx.ReadTimeout("timed out"))
    with pytest.raises(WebhookUnavailable):
        await webhook.send_query(PAYLOAD, url="http://n8n.test/hook", client=client)


@pytest.mark.asyncio
async def test_missing_url_is_webhook_unavailable():
    client = _Client(_Resp(200, "{}"))
    with pytest.raises(WebhookUnavailable):
        await webhook.send_query(PAYLOAD, url="", client=client)
    assert client.calls == []


@pytest.mark.asyncio
async def test_uses_shared_client_and_configured_url(monkeypatch):
    import support_chat.src.config as config
    from support_chat.src.clients import http

    client = _Client(_Resp(200, "{}"))
    monkeypatch.setattr(config, "N8N_WEBHOOK_URL", "http://n8n.test/configured")
    monkeypatch.setattr(config, "N8N_AUTH_TOKEN", None)
    http.set_client(client)  # type: ignore[arg-type]
    try:
        await webhook.send_query(PAYLOAD)
    finally:
        http.set_client(None)

    assert client.calls[0][0] == "http://n8n.test/configured"
