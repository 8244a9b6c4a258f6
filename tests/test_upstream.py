import json

import httpx
import pytest

import mock_upstream
from chat_gateway.events import EventEmitter
from chat_gateway.providers import Provider, ResolvedConfig
from chat_gateway.stream import run_chat_stream
from chat_gateway.upstream import UpstreamClient, UpstreamError


def _config(provider=Provider.OPENAI, model="mock-model", credential="sk-test"):
    return ResolvedConfig(
        provider=provider, model=model, credential=credential, base_url="http://mock/v1"
    )


async def _read_all(client, payload):
    return b"".join([chunk async for chunk in client.stream_bytes(payload)])


@pytest.mark.asyncio
async def test_streams_mock_upstream_body():
    transport = httpx.ASGITransport(app=mock_upstream.app)
    client = UpstreamClient(_config(), transport=transport)
    payload = {"model": "mock-model", "messages": [{"role": "user", "content": "hi"}], "stream": True}

    body = await _read_all(client, payload)

    assert body.startswith(b"data: ")
    assert b"call_mock_1" in body
    assert body.endswith(b"data: [DONE]\n\n")


@pytest.mark.asyncio
async def test_error_status_is_surfaced_verbatim():
    transport = httpx.ASGITransport(app=mock_upstream.app)
    client = UpstreamClient(_config(model="unknown-model"), transport=transport)

    with pytest.raises(UpstreamError) as info:
        await _read_all(client, {"model": "unknown-model", "messages": []})

    assert info.value.status_code == 404
    assert json.loads(info.value.body) == {"error": {"message": "model not found"}}
    assert str(info.value).startswith("API error 404: ")


@pytest.mark.asyncio
async def test_request_shape_and_credentials():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"data: [DONE]\n\n")

    client = UpstreamClient(_config(), transport=httpx.MockTransport(handler))
    await _read_all(client, {"model": "mock-model", "stream": True})

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "http://mock/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"model": "mock-model", "stream": True}


@pytest.mark.asyncio
async def test_no_authorization_without_credential():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"")

    client = UpstreamClient(
        _config(provider=Provider.OLLAMA, credential=None), transport=httpx.MockTransport(handler)
    )
    await _read_all(client, {})

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_send_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = UpstreamClient(_config(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError, match="Request failed: connection refused") as info:
        await _read_all(client, {})
    assert info.value.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [301, 302, 307])
async def test_redirect_is_a_transport_error(status):
    def handler(request):
        return httpx.Response(
            status, content=b"moved", headers={"Location": "https://mock/v1/chat/completions"}
        )

    client = UpstreamClient(_config(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as info:
        await _read_all(client, {})

    assert info.value.status_code == status
    assert str(info.value) == f"API error {status}: moved"


@pytest.mark.asyncio
async def test_redirect_ends_stream_with_error_event():
    def handler(request):
        return httpx.Response(301, content=b"moved")

    client = UpstreamClient(_config(), transport=httpx.MockTransport(handler))
    events = []

    async def sink(event):
        events.append(event.model_dump(mode="json"))

    await run_chat_stream(client, {"model": "mock-model"}, EventEmitter(sink))

    assert events == [{"type": "start"}, {"type": "error", "error": "API error 301: moved"}]
