import json

import httpx
import pytest

from warroom_client.errors import TransportError
from warroom_client.transport import iter_lines, open_stream

pytestmark = pytest.mark.asyncio


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


async def _collect(*parts: bytes) -> list[str]:
    return [line async for line in iter_lines(_chunks(*parts))]


async def test_multibyte_character_split_across_chunks():
    encoded = '{"content":"café"}\n'.encode()
    cut = encoded.index("é".encode()) + 1
    assert await _collect(encoded[:cut], encoded[cut:]) == ['{"content":"café"}']


async def test_four_byte_character_split_three_ways():
    encoded = "rocket 🚀 launch\n".encode()
    start = encoded.index("🚀".encode())
    parts = (encoded[: start + 1], encoded[start + 1 : start + 3], encoded[start + 3 :])
    assert await _collect(*parts) == ["rocket 🚀 launch"]


async def test_partial_line_is_kept_until_newline():
    lines = await _collect(b'{"type":"ch', b'unk","content":"a"}\n{"type"', b':"complete"}\n')
    assert lines == ['{"type":"chunk","content":"a"}', '{"type":"complete"}']


async def test_trailing_partial_line_is_flushed():
    assert await _collect(b"one\ntwo") == ["one", "two"]


async def test_crlf_and_empty_chunks():
    assert await _collect(b"", b"a\r\n\r\nb\r\n", b"") == ["a", "", "b"]


async def test_invalid_bytes_are_replaced():
    assert await _collect(b"ok \xff\n") == ["ok �"]


async def test_open_stream_yields_body_bytes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, content=b"line one\nline two\n")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        async with open_stream(http, "http://backend.test/s", {"q": 1}, {"Authorization": "Bearer t"}) as chunks:
            lines = [line async for line in iter_lines(chunks)]

    assert lines == ["line one", "line two"]
    assert seen == {"body": {"q": 1}, "auth": "Bearer t"}


async def test_open_stream_json_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": {"message": "overloaded", "code": "busy"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(TransportError) as exc_info:
            async with open_stream(http, "http://backend.test/s", {}, {}):
                pytest.fail("body must not be yielded")

    err = exc_info.value
    assert err.message == "overloaded"
    assert err.code == "busy"
    assert err.status_code == 503
    assert err.retryable is True


async def test_open_stream_text_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not here")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(TransportError) as exc_info:
            async with open_stream(http, "http://backend.test/s", {}, {}):
                pass

    err = exc_info.value
    assert err.message == "Backend API error: 404"
    assert err.code == "backend_status"
    assert err.retryable is False


@pytest.mark.parametrize(
    "exc, message, code",
    [
        (httpx.ConnectError("refused"), "upstream connection error", "upstream_unavailable"),
        (httpx.ReadTimeout("slow"), "upstream timeout", "upstream_timeout"),
    ],
)
async def test_open_stream_network_failures(exc, message, code):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(TransportError) as exc_info:
            async with open_stream(http, "http://backend.test/s", {}, {}):
                pass

    assert exc_info.value.message == message
    assert exc_info.value.code == code
    assert exc_info.value.retryable is True
