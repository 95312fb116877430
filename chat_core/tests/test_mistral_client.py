from datetime import datetime, timezone

import httpx
import pytest

from chat_core.credentials import CredentialGate
from chat_core.domain.models import ConversationTurn, FailureKind, Language
from chat_core.providers.mistral_client import MistralClient


class SettingsStub:
    http_timeout = 1.0
    mistral_base_url = "https://api.mistral.ai/v1"
    reference_timezone = "Asia/Bangkok"


HISTORY = [
    ConversationTurn(role="user", content="hi"),
    ConversationTurn(role="assistant", content="hello"),
    ConversationTurn(role="user", content="how are you?"),
]


class Resp:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


def fake_client(resp=None, error=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
            if error is not None:
                raise error
            return resp

    return Client


def make_client(keys=None):
    gate = CredentialGate({"mistral": "m-key"} if keys is None else keys)
    clock = lambda: datetime(2024, 3, 5, 7, 7, tzinfo=timezone.utc)  # noqa: E731
    return MistralClient(gate, SettingsStub(), clock=clock)


def ok_payload(content="fine, thanks"):
    return {
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }


@pytest.mark.asyncio
async def test_mistral_client_basic(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(200, ok_payload("**raw** text")), captured=captured))

    res = await make_client().complete(HISTORY, Language.EN)

    assert res.ok
    # 原样返回，不在适配器里清洗
    assert res.text == "**raw** text"
    assert res.provider == "mistral"
    assert captured["url"] == "https://api.mistral.ai/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer m-key"
    assert captured["client_kwargs"]["timeout"] == 1.0


@pytest.mark.asyncio
async def test_mistral_payload_has_system_prompt_and_fixed_sampling(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(200, ok_payload()), captured=captured))

    await make_client().complete(HISTORY, Language.ZH)

    payload = captured["payload"]
    assert payload["model"] == "mistral-large-latest"
    assert payload["temperature"] == 0.7
    assert payload["top_p"] == 0.95
    assert payload["max_tokens"] == 1000
    assert payload["presence_penalty"] == 0.5
    assert payload["frequency_penalty"] == 0.5
    messages = payload["messages"]
    assert messages[0]["role"] == "system"
    assert "2024年3月5日 14:07" in messages[0]["content"]
    assert [m["content"] for m in messages[1:]] == ["hi", "hello", "how are you?"]


@pytest.mark.asyncio
async def test_missing_key_makes_no_network_call(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            raise AssertionError("network should not be used")

    monkeypatch.setattr("httpx.AsyncClient", Client)
    res = await make_client(keys={}).complete(HISTORY, Language.EN)
    assert not res.ok
    assert res.kind is FailureKind.MISSING_CREDENTIAL


@pytest.mark.asyncio
async def test_network_error(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", fake_client(error=httpx.ConnectError("connection refused")))
    res = await make_client().complete(HISTORY, Language.EN)
    assert res.kind is FailureKind.NETWORK_FAILURE
    assert "connection refused" in res.message


@pytest.mark.asyncio
async def test_provider_error_payload(monkeypatch):
    body = {"error": {"message": "service overloaded"}}
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(500, body)))
    res = await make_client().complete(HISTORY, Language.EN)
    assert res.kind is FailureKind.PROVIDER_REJECTED
    assert res.message == "service overloaded"
    assert res.http_status == 500


@pytest.mark.asyncio
async def test_unauthorized_is_invalid_credential(monkeypatch):
    body = {"message": "Unauthorized", "object": "error"}
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(401, body)))
    res = await make_client().complete(HISTORY, Language.EN)
    assert res.kind is FailureKind.INVALID_CREDENTIAL
    assert res.message == "Unauthorized"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "resp",
    [
        Resp(200, {"choices": []}),
        Resp(200, {"choices": [{"message": {"role": "assistant", "content": ""}}]}),
        Resp(200, {"choices": [{"message": {"role": "assistant"}}]}),
        Resp(200, None),
        Resp(200, {"choices": [{"message": "oops"}]}),
        Resp(200, {"choices": [{"message": ["oops"]}]}),
        Resp(200, {"choices": {"0": {"message": {"content": "hi"}}}}),
        Resp(200, {"choices": ["hi"]}),
        Resp(200, {"choices": [{"message": {"content": 42}}]}),
        Resp(200, ["hi"]),
    ],
)
async def test_malformed_response_never_succeeds(monkeypatch, resp):
    monkeypatch.setattr("httpx.AsyncClient", fake_client(resp))
    res = await make_client().complete(HISTORY, Language.EN)
    assert not res.ok
    assert res.kind is FailureKind.MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_probe_sends_minimal_request(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(200, ok_payload("x")), captured=captured))

    assert await make_client().probe("candidate") is True
    assert captured["payload"]["model"] == "mistral-tiny"
    assert captured["payload"]["max_tokens"] == 1
    assert captured["headers"]["Authorization"] == "Bearer candidate"


@pytest.mark.asyncio
async def test_probe_rejected(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(401, {"message": "Unauthorized"})))
    assert await make_client().probe("bad") is False


@pytest.mark.asyncio
async def test_probe_network_error_is_inconclusive(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", fake_client(error=httpx.ConnectTimeout("timeout")))
    assert await make_client().probe("k") is None


@pytest.mark.asyncio
async def test_parser_errors_are_folded_into_malformed(monkeypatch):
    class StrictMistral(MistralClient):
        def _extract_text(self, data):
            return data["choices"][0]["message"]["content"]

    monkeypatch.setattr("httpx.AsyncClient", fake_client(Resp(200, {"choices": [{"message": "oops"}]})))
    client = StrictMistral(CredentialGate({"mistral": "m-key"}), SettingsStub())

    res = await client.complete(HISTORY, Language.EN)

    assert not res.ok
    assert res.kind is FailureKind.MALFORMED_RESPONSE
