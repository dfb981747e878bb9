import json

import httpx
import pytest

from support_chat.src.clients.directus import DirectusCatalog, DirectusMessageStore
from support_chat.src.errors import StoreUnavailable, ValidationError


class _Resp:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(body) if body is not None else ""
        self.content = self.text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class _Client:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


def _store(client, token="directus-secret-token"):
    return DirectusMessageStore("https://cms.test", token, client=client)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_create_message_without_conversation_creates_one_first():
    client = _Client(
        _Resp(200, {"data": {"id": 41}}),
        _Resp(
            200,
            {
                "data": {
                    "id": 7,
                    "conversation_id": 41,
                    "content": "hola",
                    "type": "user",
                    "user_id": "u-1",
                    "timestamp": "2024-05-01T10:00:00Z",
                }
            },
        ),
    )

    message = await _store(client).create_message("hola", "u-1", None, "user")

    assert message.id == "7"
    assert message.conversation_id == "41"
    assert message.type == "user"
    assert [(m, u) for m, u, _ in client.calls] == [
        ("POST", "https://cms.test/items/conversations"),
        ("POST", "https://cms.test/items/messages"),
    ]
    assert client.calls[0][2]["json"] == {}
    sent = client.calls[1][2]["json"]
    assert sent["conversation_id"] == "41"
    assert sent["content"] == "hola"
    assert sent["type"] == "user"
    assert client.calls[1][2]["headers"]["Authorization"] == "Bearer directus-secret-token"


@pytest.mark.asyncio
async def test_create_message_falls_back_to_sent_fields():
    client = _Client(_Resp(200, {"data": {"id": 9}}))

    message = await _store(client).create_message("answer", None, "41", "agent")

    assert message.id == "9"
    assert message.conversation_id == "41"
    assert message.type == "agent"
    assert message.content == "answer"
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_get_messages_filters_and_sorts():
    client = _Client(
        _Resp(
            200,
            {
                "data": [
                    {"id": 1, "conversation_id": "41", "content": "q", "type": "user"},
                    {"id": 2, "conversation_id": "41", "content": "a", "type": "assistant"},
                ]
            },
        )
    )

    messages = await _store(client).get_messages("41")

    assert [(m.id, m.type) for m in messages] == [("1", "user"), ("2", "agent")]
    method, url, kwargs = client.calls[0]
    assert method == "GET"
    assert url == "https://cms.test/items/messages"
    assert kwargs["params"]["filter[conversation_id][_eq]"] == "41"
    assert kwargs["params"]["sort"] == "timestamp,id"


@pytest.mark.asyncio
async def test_get_messages_empty_and_malformed_records(caplog):
    client = _Client(
        _Resp(200, {"data": []}),
        _Resp(200, {"data": [{"id": 1, "conversation_id": "41", "type": "system"}, {"id": 2, "conversation_id": "41", "type": "agent"}]}),
    )
    store = _store(client)

    assert await store.get_messages("unknown") == []
    messages = await store.get_messages("41")
    assert [m.id for m in messages] == ["2"]
    assert any(r.levelname == "ERROR" and "malformed" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_transport_error_is_store_unavailable():
    client = _Client(httpx.ConnectError("connection refused"))
    with pytest.raises(StoreUnavailable):
        await _store(client).get_messages("41")


@pytest.mark.asyncio
async def test_server_error_is_store_unavailable():
    client = _Client(_Resp(503, text="Service Unavailable"))
    with pytest.raises(StoreUnavailable) as exc_info:
        await _store(client).create_conversation()
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_client_error_on_create_message_is_validation_error():
    client = _Client(_Resp(400, {"errors": [{"message": "Invalid payload"}]}))
    with pytest.raises(ValidationError):
        await _store(client).create_message("hi", "u-1", "41", "user")


@pytest.mark.asyncio
async def test_client_error_on_read_is_store_unavailable():
    client = _Client(_Resp(401, {"errors": [{"message": "Invalid token"}]}))
    with pytest.raises(StoreUnavailable):
        await _store(client).get_messages("41")


@pytest.mark.asyncio
async def test_invalid_message_rejected_before_any_request():
    client = _Client()
    with pytest.raises(ValidationError):
        await _store(client).create_message("", "u-1", "41", "user")
    assert client.calls == []


@pytest.mark.asyncio
async def test_unconfigured_store_is_unavailable(monkeypatch):
    import support_chat.src.config as config

    monkeypatch.setattr(config, "DIRECTUS_URL", None)
    with pytest.raises(StoreUnavailable):
        await DirectusMessageStore(client=_Client()).get_messages("41")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_catalog_reads_services_and_faqs():
    client = _Client(
        _Resp(200, {"data": [{"id": 1, "title": "Billing"}]}),
        _Resp(200, {"data": {"id": 1, "title": "Billing", "poc_docus": [{"id": 3}]}}),
        _Resp(200, {"data": {"faqs": [{"question": "How do I pay?"}]}}),
        _Resp(200, {"data": {"faqs": None}}),
    )
    catalog = DirectusCatalog("https://cms.test", "t0k3n", client=client)  # type: ignore[arg-type]

    assert await catalog.get_services() == [{"id": 1, "title": "Billing"}]
    service = await catalog.get_service("1")
    assert service["poc_docus"] == [{"id": 3}]
    assert await catalog.get_faqs("1") == [{"question": "How do I pay?"}]
    assert await catalog.get_faqs("2") == []

    assert client.calls[1][1] == "https://cms.test/items/poc_service/1"
    assert client.calls[1][2]["params"] == {"fields": "*,poc_docus.*"}
    assert client.calls[2][2]["params"] == {"fields": "faqs.*"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 404])
async def test_catalog_unknown_service_is_none(status):
    client = _Client(
        _Resp(status, {"errors": [{"message": "Forbidden"}]}),
        _Resp(status, {"errors": [{"message": "Forbidden"}]}),
    )
    catalog = DirectusCatalog("https://cms.test", "t0k3n", client=client)  # type: ignore[arg-type]
    assert await catalog.get_service("999") is None
    assert await catalog.get_faqs("999") is None


@pytest.mark.asyncio
async def test_catalog_faqs_server_error_is_unavailable():
    client = _Client(_Resp(503, {"errors": []}))
    catalog = DirectusCatalog("https://cms.test", "t0k3n", client=client)  # type: ignore[arg-type]
    with pytest.raises(StoreUnavailable):
        await catalog.get_faqs("1")
