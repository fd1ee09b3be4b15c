import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from replay_backend.script import (
    REPLAY_FAILURE,
    compose_reply,
    dual_stream_events,
    format_ndjson,
    format_sse,
    format_sse_done,
    last_user_query,
    single_stream_events,
)
from replay_backend.settings import get_settings
from shared.constants import (
    CHAT_COMPLETION_PATH,
    DUAL_STREAM_PATH,
    GEMINI_COMPLETION_PATH,
    SINGLE_STREAM_PATH,
)
from shared.observability import REQUEST_ID_HEADER, configure_logging, new_request_id, set_request_id
from shared.schemas import (
    ChatCompletionData,
    ChatCompletionResponse,
    DualStreamRequest,
    SingleStreamRequest,
)

SERVICE_LOGGERS = ("replay_backend", "uvicorn", "uvicorn.error", "uvicorn.access")
HIDDEN_IN_PROD = ("/docs", "/redoc", "/openapi.json")

settings = get_settings()
configure_logging(settings.log_level, SERVICE_LOGGERS)
logger = logging.getLogger(__name__)

app = FastAPI(title="Replay Backend")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming:
        set_request_id(incoming)
        request_id = incoming
    else:
        request_id = new_request_id()
    if settings.app_env.lower() == "prod" and request.url.path in HIDDEN_IN_PROD:
        return JSONResponse(status_code=404, content={"detail": "not found"})
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.middleware("http")
async def bearer_auth_middleware(request: Request, call_next):
    if settings.auth_token and request.url.path.startswith("/ai"):
        expected = f"Bearer {settings.auth_token}"
        if request.headers.get("Authorization") != expected:
            return JSONResponse(status_code=401, content={"success": False, "error": "unauthorized"})
    return await call_next(request)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post(SINGLE_STREAM_PATH)
async def chat_completion_stream(payload: SingleStreamRequest):
    query = last_user_query(payload.messages)
    logger.info(
        "single stream model=%s messages=%s agent_id=%s",
        payload.model,
        len(payload.messages),
        payload.agent_id,
    )

    async def event_stream():
        for event in single_stream_events(
            query, payload.model, settings.fail_marker, settings.chunk_words
        ):
            yield format_ndjson(event)

    return StreamingResponse(event_stream(), media_type="application/x-ndjson")


@app.post(DUAL_STREAM_PATH)
async def dual_orchestration_stream(payload: DualStreamRequest):
    logger.info(
        "dual stream history=%s context_files=%s agent_id=%s",
        len(payload.messages),
        len(payload.context_files),
        payload.agent_id,
    )

    async def event_stream():
        for event in dual_stream_events(payload.user_query, settings.fail_marker, settings.chunk_words):
            yield format_sse(event)
            if event.type == "error":
                return
        yield format_sse_done()

    return StreamingResponse(event_stream(), media_type="text/event-stream")


def _completion(payload: SingleStreamRequest, provider: str):
    query = last_user_query(payload.messages)
    if settings.fail_marker in query:
        logger.warning("replaying failure provider=%s", provider)
        return JSONResponse(
            status_code=502,
            content=ChatCompletionResponse(success=False, error=REPLAY_FAILURE).model_dump(
                exclude_none=True
            ),
        )
    return ChatCompletionResponse(
        success=True,
        data=ChatCompletionData(
            content=compose_reply(query, payload.model),
            model=payload.model,
            provider=provider,
        ),
    )


@app.post(CHAT_COMPLETION_PATH)
async def chat_completion(payload: SingleStreamRequest):
    return _completion(payload, "replay")


@app.post(GEMINI_COMPLETION_PATH)
async def gemini_completion(payload: SingleStreamRequest):
    return _completion(payload, "gemini")
