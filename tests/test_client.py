import json

import httpx
import pytest

from penny.nlu.client import WitClient
from tests.mocks import NOW


def wit_client(handler) -> WitClient:
    transport = httpx.MockTransport(handler)
    return WitClient("secret", client=httpx.AsyncClient(transport=transport))


@pytest.mark.asyncio
async def test_query_text():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"intents": [{"name": "tell_joke"}]})

    data = await wit_client(handler).query_text("x" * 300, NOW)

    assert data == {"intents": [{"name": "tell_joke"}]}
    (request,) = seen
    assert request.method == "GET"
    assert request.url.path == "/message"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.url.params["v"] == "20200612"
    assert request.url.params["q"] == "x" * 280
    assert json.loads(request.url.params["context"]) == {"reference_time": NOW.isoformat()}


@pytest.mark.asyncio
async def test_query_voice():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"text": "hello"})

    data = await wit_client(handler).query_voice(b"mp3-bytes", NOW)

    assert data == {"text": "hello"}
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/speech"
    assert request.headers["Content-Type"] == "audio/mpeg"
    assert request.content == b"mp3-bytes"


@pytest.mark.asyncio
async def test_http_errors_propagate():
    client = wit_client(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(httpx.HTTPStatusError):
        await client.query_text("hi", NOW)
