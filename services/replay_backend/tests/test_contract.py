import pytest

from shared.schemas import ChatCompletionData
from warroom_client.client import WarRoomClient
from warroom_client.coordinator import DualStreamCallbacks
from warroom_client.errors import BackendError
from warroom_client.fallback import MODE_SINGLE, stream_with_fallback
from warroom_client.reconciler import StreamCallbacks

PRICING = [{"role": "user", "content": "pricing"}]
BRANDED_REPLY = "SaintSal™ here. You asked about pricing."


def single_callbacks(calls: list) -> StreamCallbacks:
    return StreamCallbacks(
        on_chunk=lambda delta: calls.append(("chunk", delta)),
        on_complete=lambda: calls.append(("complete",)),
        on_error=lambda message: calls.append(("error", message)),
        on_web_search_start=lambda query: calls.append(("search_start", query)),
        on_web_search_complete=lambda: calls.append(("search_complete",)),
    )


def dual_callbacks(calls: list) -> DualStreamCallbacks:
    return DualStreamCallbacks(
        on_step=lambda tag, message: calls.append(("step", tag)),
        on_chunk=lambda text, done, tag: calls.append(("chunk", text, done, tag)),
        on_complete=lambda final, a, b: calls.append(("complete", final, a, b)),
        on_error=lambda message: calls.append(("error", message)),
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


def test_ai_routes_require_bearer_token(client):
    response = client.post("/ai/chat-completion", json={"messages": [], "model": "gpt-5"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "unauthorized"}


def test_dual_stream_wire_format(client):
    response = client.post(
        "/ai/dual-orchestration-stream",
        json={"userQuery": "pricing"},
        headers={"Authorization": "Bearer replay-token"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text.startswith("event: step\ndata: ")
    assert response.text.endswith("data: [DONE]\n\n")


@pytest.mark.asyncio
async def test_single_stream_end_to_end(warroom):
    calls = []
    reconciler = await warroom.stream_chat(PRICING, single_callbacks(calls))
    assert calls[-1] == ("complete",)
    assert "".join(call[1] for call in calls if call[0] == "chunk") == BRANDED_REPLY
    assert reconciler.text == BRANDED_REPLY


@pytest.mark.asyncio
async def test_single_stream_web_search(warroom):
    calls = []
    await warroom.stream_chat([{"role": "user", "content": "search: mortgage rates"}], single_callbacks(calls))
    assert calls[:2] == [("search_start", "mortgage rates"), ("search_complete",)]
    assert calls[-1] == ("complete",)


@pytest.mark.asyncio
async def test_single_stream_failure(warroom):
    calls = []
    await warroom.stream_chat([{"role": "user", "content": "pricing [fail]"}], single_callbacks(calls))
    assert calls == [("error", "upstream timeout")]


@pytest.mark.asyncio
async def test_dual_stream_end_to_end(warroom):
    calls = []
    await warroom.stream_dual(PRICING, dual_callbacks(calls))

    assert [call[1] for call in calls if call[0] == "step"] == ["chatgpt", "claude"]
    last_chunks = [call for call in calls if call[0] == "chunk" and call[2]]
    assert last_chunks == [
        ("chunk", BRANDED_REPLY, True, "chatgpt"),
        ("chunk", BRANDED_REPLY, True, "claude"),
    ]
    assert calls[-1] == ("complete", BRANDED_REPLY, BRANDED_REPLY, BRANDED_REPLY)


@pytest.mark.asyncio
async def test_failed_dual_stream_falls_back(warroom):
    dual_calls, single_calls, fallbacks = [], [], []
    result = await stream_with_fallback(
        warroom,
        [{"role": "user", "content": "pricing [fail]"}],
        dual_callbacks(dual_calls),
        single_callbacks(single_calls),
        on_fallback=fallbacks.append,
    )
    assert result.mode == MODE_SINGLE
    assert dual_calls == [("step", "chatgpt"), ("error", "upstream timeout")]
    assert fallbacks == ["upstream timeout"]
    # the replayed failure marker also fails the single stream
    assert single_calls == [("error", "upstream timeout")]


@pytest.mark.asyncio
async def test_missing_token_is_reported(warroom, replay_http):
    calls = []
    anonymous = WarRoomClient(warroom.settings, http_client=replay_http)
    await anonymous.stream_chat(PRICING, single_callbacks(calls))
    assert calls == [("error", "unauthorized")]


@pytest.mark.asyncio
async def test_chat_completion(warroom):
    completion = await warroom.chat_completion(PRICING)
    assert completion.content == BRANDED_REPLY
    assert completion.provider == "replay"
    assert isinstance(completion, ChatCompletionData)


@pytest.mark.asyncio
async def test_chat_completion_failure(warroom):
    with pytest.raises(BackendError) as exc_info:
        await warroom.chat_completion([{"role": "user", "content": "[fail]"}])
    assert exc_info.value.message == "upstream timeout"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_gemini_provider_replays_completion(warroom):
    calls = []
    await warroom.stream_provider("gemini", PRICING, single_callbacks(calls))
    text = "".join(call[1] for call in calls if call[0] == "chunk")
    assert text == "SaintSal™-2.5-flash here. You asked about pricing."
    assert calls[-1] == ("complete",)
