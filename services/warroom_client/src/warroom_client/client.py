import asyncio
import functools
import logging
from contextlib import aclosing, asynccontextmanager
from typing import Any, AsyncIterator, Iterable

import httpx
from pydantic import ValidationError

from shared.constants import (
    CHAT_COMPLETION_PATH,
    DUAL_STREAM_PATH,
    GEMINI_COMPLETION_PATH,
    SCRAPE_URL_PATH,
    SINGLE_STREAM_PATH,
    WEB_SEARCH_PATH,
)
from shared.observability import new_request_id, request_id_headers
from shared.schemas import (
    ChatCompletionData,
    ChatMessage,
    ChunkEvent,
    CompleteEvent,
    DualStreamRequest,
    SingleStreamRequest,
)
from warroom_client.auth import TokenProvider
from warroom_client.content_filter import filter_content
from warroom_client.coordinator import DualStreamCallbacks, DualStreamCoordinator
from warroom_client.errors import (
    AuthenticationRequired,
    BackendError,
    TransportError,
    WarRoomError,
    extract_error_message,
    retryable_for_status,
)
from warroom_client.frames import DroppedHook, FrameParser, iter_events
from warroom_client.models import (
    Agent,
    ChatDetail,
    ChatSummary,
    ContextFile,
    ScrapedPage,
    WebSearchResult,
)
from warroom_client.reconciler import SingleStreamReconciler, StreamCallbacks
from warroom_client.settings import Settings, get_settings
from warroom_client.transport import iter_lines, open_stream

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_GEMINI = "gemini"
PROVIDERS = (PROVIDER_OPENAI, PROVIDER_ANTHROPIC, PROVIDER_GEMINI)

NO_GEMINI_RESPONSE = "No response generated"

MessagesInput = Iterable[ChatMessage | dict]


def coerce_messages(messages: MessagesInput) -> list[ChatMessage]:
    return [m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m) for m in messages]


class StreamHandle:
    """Cancellation handle for a streaming call running as a task.

    ``cancel()`` silences the session first, so no callback fires after it
    returns, then cancels the task, which closes the HTTP response.
    """

    def __init__(self, task: asyncio.Task, sink: SingleStreamReconciler | DualStreamCoordinator) -> None:
        self._task = task
        self.sink = sink

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self.sink.abandon()
        self._task.cancel()

    async def wait(self) -> None:
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class WarRoomClient:
    """Client for the WarRoom chat backend.

    Holds no per-conversation state: every streaming call builds its own
    reconciler or coordinator. The HTTP client and token provider are
    injected; without an HTTP client a short-lived one is opened per call.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        on_dropped: DroppedHook | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._tokens = token_provider
        self._http_client = http_client
        self._on_dropped = on_dropped
        self.content_filter = functools.partial(filter_content, brand=self.settings.brand_name)

    def _url(self, path: str) -> str:
        return f"{self.settings.backend_url}{path}"

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.settings.timeout_seconds) as client:
            yield client

    async def _token(self, anonymous_fallback: bool = True) -> str | None:
        if self._tokens is None:
            return None
        token = await self._tokens.get_token()
        if not token and anonymous_fallback:
            token = await self._tokens.sign_in_anonymously()
        return token

    def _headers(self, accept: str, token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": accept}
        if accept == "text/event-stream":
            headers["Cache-Control"] = "no-cache"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers.update(request_id_headers())
        return headers

    # streaming

    def _single_payload(
        self,
        messages: MessagesInput,
        model: str | None,
        agent_id: str | None,
        temperature: float | None,
    ) -> dict:
        request = SingleStreamRequest(
            messages=coerce_messages(messages),
            temperature=self.settings.temperature if temperature is None else temperature,
            model=model or self.settings.openai_model,
            agent_id=agent_id,
        )
        return request.model_dump(exclude_none=True)

    def _dual_payload(
        self,
        messages: MessagesInput,
        context_files: str,
        temperature: float | None,
        agent_id: str | None,
    ) -> dict:
        request = DualStreamRequest.from_conversation(
            coerce_messages(messages),
            context_files=context_files,
            temperature=self.settings.temperature if temperature is None else temperature,
            agent_id=agent_id,
        )
        return request.model_dump(by_alias=True, exclude_none=True)

    async def _pump(self, path: str, payload: dict, sink):
        new_request_id()
        sink.start()
        logger.info("stream start path=%s", path)
        try:
            headers = self._headers("text/event-stream", await self._token())
            async with self._http() as http:
                async with open_stream(http, self._url(path), payload, headers) as chunks:
                    parser = FrameParser(self._on_dropped)
                    async with aclosing(iter_lines(chunks)) as lines:
                        async with aclosing(iter_events(lines, parser)) as events:
                            async for event in events:
                                if sink.feed(event):
                                    break
            sink.finish()
        except WarRoomError as exc:
            logger.warning(
                "stream failed path=%s code=%s status=%s", path, exc.code, exc.status_code
            )
            sink.fail(exc)
        except asyncio.CancelledError:
            sink.abandon()
            raise
        return sink

    async def stream_chat(
        self,
        messages: MessagesInput,
        callbacks: StreamCallbacks,
        model: str | None = None,
        agent_id: str | None = None,
        temperature: float | None = None,
    ) -> SingleStreamReconciler:
        payload = self._single_payload(messages, model, agent_id, temperature)
        reconciler = SingleStreamReconciler(callbacks, self.content_filter)
        return await self._pump(SINGLE_STREAM_PATH, payload, reconciler)

    def start_chat_stream(
        self,
        messages: MessagesInput,
        callbacks: StreamCallbacks,
        model: str | None = None,
        agent_id: str | None = None,
        temperature: float | None = None,
    ) -> StreamHandle:
        payload = self._single_payload(messages, model, agent_id, temperature)
        reconciler = SingleStreamReconciler(callbacks, self.content_filter)
        task = asyncio.create_task(self._pump(SINGLE_STREAM_PATH, payload, reconciler))
        return StreamHandle(task, reconciler)

    async def stream_dual(
        self,
        messages: MessagesInput,
        callbacks: DualStreamCallbacks,
        context_files: str = "",
        temperature: float | None = None,
        agent_id: str | None = None,
    ) -> DualStreamCoordinator:
        payload = self._dual_payload(messages, context_files, temperature, agent_id)
        coordinator = DualStreamCoordinator(callbacks, self.content_filter)
        return await self._pump(DUAL_STREAM_PATH, payload, coordinator)

    def start_dual_stream(
        self,
        messages: MessagesInput,
        callbacks: DualStreamCallbacks,
        context_files: str = "",
        temperature: float | None = None,
        agent_id: str | None = None,
    ) -> StreamHandle:
        payload = self._dual_payload(messages, context_files, temperature, agent_id)
        coordinator = DualStreamCoordinator(callbacks, self.content_filter)
        task = asyncio.create_task(self._pump(DUAL_STREAM_PATH, payload, coordinator))
        return StreamHandle(task, coordinator)

    async def stream_provider(
        self,
        provider: str,
        messages: MessagesInput,
        callbacks: StreamCallbacks,
        agent_id: str | None = None,
    ) -> SingleStreamReconciler:
        if provider == PROVIDER_OPENAI:
            return await self.stream_chat(
                messages, callbacks, model=self.settings.openai_model, agent_id=agent_id
            )
        if provider == PROVIDER_ANTHROPIC:
            return await self.stream_chat(
                messages, callbacks, model=self.settings.anthropic_model, agent_id=agent_id
            )
        if provider == PROVIDER_GEMINI:
            return await self._stream_gemini(messages, callbacks, agent_id)
        reconciler = SingleStreamReconciler(callbacks, self.content_filter)
        reconciler.fail(
            WarRoomError(f"Unsupported AI provider: {provider}", code="unsupported_provider")
        )
        return reconciler

    async def _stream_gemini(
        self,
        messages: MessagesInput,
        callbacks: StreamCallbacks,
        agent_id: str | None,
    ) -> SingleStreamReconciler:
        # Gemini has no streaming endpoint; the full reply is replayed word by word.
        messages = coerce_messages(messages)
        try:
            text = await self.gemini_completion(messages)
        except WarRoomError as exc:
            logger.warning("gemini request failed, falling back to %s: %s", PROVIDER_OPENAI, exc.message)
            return await self.stream_chat(
                messages, callbacks, model=self.settings.openai_model, agent_id=agent_id
            )

        reconciler = SingleStreamReconciler(callbacks, self.content_filter)
        reconciler.start()
        words = text.split(" ")
        try:
            for index, word in enumerate(words):
                if index:
                    await asyncio.sleep(self.settings.gemini_word_delay_seconds)
                content = word if index == len(words) - 1 else f"{word} "
                reconciler.feed(ChunkEvent(content=content))
        except asyncio.CancelledError:
            reconciler.abandon()
            raise
        reconciler.feed(CompleteEvent())
        return reconciler

    # request/response

    async def _request_json(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        token_required: str | None = None,
        anonymous_fallback: bool = False,
    ) -> Any:
        new_request_id()
        token = await self._token(anonymous_fallback=anonymous_fallback)
        if token_required and not token:
            raise AuthenticationRequired(
                f"Authentication required. Please sign in to {token_required}.",
                code="auth_required",
                status_code=401,
            )
        headers = self._headers("application/json", token)
        try:
            async with self._http() as http:
                resp = await http.request(method, self._url(path), json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError("upstream timeout", code="upstream_timeout", retryable=True) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                "upstream connection error", code="upstream_unavailable", retryable=True
            ) from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.is_success:
            message, code = extract_error_message(body, f"HTTP error! status: {resp.status_code}")
            logger.warning("backend error path=%s status=%s code=%s", path, resp.status_code, code)
            raise BackendError(
                message,
                code=code or "backend_status",
                status_code=resp.status_code,
                retryable=retryable_for_status(resp.status_code),
            )
        if body is None:
            raise BackendError(f"Invalid response format from {path}", code="invalid_response")
        if isinstance(body, dict) and "success" in body:
            if not body.get("success"):
                message, code = extract_error_message(body, "request failed")
                raise BackendError(message, code=code or "request_failed", status_code=resp.status_code)
            return body.get("data")
        return body

    def _parse(self, model, data, path: str):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise BackendError(f"Invalid response format from {path}", code="invalid_response") from exc

    async def chat_completion(
        self,
        messages: MessagesInput,
        model: str | None = None,
        temperature: float | None = None,
        agent_id: str | None = None,
    ) -> ChatCompletionData:
        payload = self._single_payload(messages, model, agent_id, temperature)
        data = await self._request_json("POST", CHAT_COMPLETION_PATH, payload, anonymous_fallback=True)
        completion = self._parse(ChatCompletionData, data or {}, CHAT_COMPLETION_PATH)
        completion.content = self.content_filter(completion.content)
        return completion

    async def gemini_completion(self, messages: MessagesInput) -> str:
        payload = {
            "messages": [m.model_dump() for m in coerce_messages(messages)],
            "temperature": self.settings.temperature,
            "model": self.settings.gemini_model,
        }
        data = await self._request_json("POST", GEMINI_COMPLETION_PATH, payload, anonymous_fallback=True)
        content = (data or {}).get("content") if isinstance(data, dict) else None
        return self.content_filter(content or NO_GEMINI_RESPONSE)

    async def web_search(self, query: str) -> WebSearchResult:
        data = await self._request_json("POST", WEB_SEARCH_PATH, {"query": query}, anonymous_fallback=True)
        return self._parse(WebSearchResult, data or {}, WEB_SEARCH_PATH)

    async def scrape_url(self, url: str) -> ScrapedPage:
        data = await self._request_json("POST", SCRAPE_URL_PATH, {"url": url}, anonymous_fallback=True)
        return self._parse(ScrapedPage, data, SCRAPE_URL_PATH)

    async def create_chat(self, title: str) -> ChatSummary:
        data = await self._request_json("POST", "/chats", {"title": title}, token_required="create chats")
        return self._parse(ChatSummary, data, "/chats")

    async def list_chats(self) -> list[ChatSummary]:
        data = await self._request_json("GET", "/chats", token_required="view your chats")
        return [self._parse(ChatSummary, item, "/chats") for item in data or []]

    async def get_chat(self, chat_id: str) -> ChatDetail:
        path = f"/chats/{chat_id}"
        data = await self._request_json("GET", path, token_required="view chats")
        return self._parse(ChatDetail, data, path)

    async def save_chat(
        self,
        title: str,
        messages: MessagesInput,
        files: list[ContextFile] | None = None,
    ) -> ChatSummary:
        payload = {
            "title": title,
            "messages": [m.model_dump() for m in coerce_messages(messages)],
            "files": [f.model_dump(by_alias=True, exclude_none=True) for f in files or []],
        }
        data = await self._request_json("POST", "/chats/save", payload, token_required="save chats")
        return self._parse(ChatSummary, data, "/chats/save")

    async def list_agents(self) -> list[Agent]:
        data = await self._request_json("GET", "/agents")
        return [self._parse(Agent, item, "/agents") for item in data or []]
