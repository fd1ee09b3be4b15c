"""Deterministic frame scripts for the replay backend."""
import json
import time
from typing import Iterator

from shared.constants import DONE_SENTINEL
from shared.schemas import (
    ChatMessage,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StepCompleteEvent,
    StepEvent,
    WebSearchCompleteEvent,
    WebSearchStartEvent,
)

SEARCH_PREFIX = "search:"
PRIMARY_STEP = "chatgpt"
SECONDARY_STEP = "claude"
REPLAY_FAILURE = "upstream timeout"


def last_user_query(messages: list[ChatMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


def compose_reply(query: str, voice: str) -> str:
    query = query.strip() or "nothing in particular"
    return f"{voice} here. You asked about {query}."


def split_chunks(text: str, words_per_chunk: int) -> list[str]:
    words = text.split(" ")
    chunks = []
    for start in range(0, len(words), words_per_chunk):
        piece = " ".join(words[start : start + words_per_chunk])
        if start + words_per_chunk < len(words):
            piece += " "
        chunks.append(piece)
    return chunks


def _dump(event) -> str:
    return json.dumps(event.model_dump(by_alias=True, exclude_none=True), ensure_ascii=False)


def format_ndjson(event) -> str:
    return f"{_dump(event)}\n"


def format_sse(event) -> str:
    return f"event: {event.type}\ndata: {_dump(event)}\n\n"


def format_sse_done() -> str:
    return f"data: {DONE_SENTINEL}\n\n"


def single_stream_events(query: str, model: str, fail_marker: str, chunk_words: int) -> Iterator:
    if query.lower().startswith(SEARCH_PREFIX):
        yield WebSearchStartEvent(query=query[len(SEARCH_PREFIX) :].strip())
        yield WebSearchCompleteEvent()
    if fail_marker in query:
        yield ErrorEvent(message=REPLAY_FAILURE)
        return
    for piece in split_chunks(compose_reply(query, model), chunk_words):
        yield ChunkEvent(content=piece)
    yield CompleteEvent()


def _leg_events(step: str, reply: str, chunk_words: int) -> Iterator:
    started = time.perf_counter()
    yield StepEvent(step=step, message=f"Consulting {step}...")
    pieces = split_chunks(reply, chunk_words)
    for index, piece in enumerate(pieces):
        yield ChunkEvent(content=piece, step=step, is_complete=index == len(pieces) - 1)
    yield StepCompleteEvent(step=step, duration_ms=round((time.perf_counter() - started) * 1000, 3))


def dual_stream_events(query: str, fail_marker: str, chunk_words: int) -> Iterator:
    if fail_marker in query:
        yield StepEvent(step=PRIMARY_STEP, message=f"Consulting {PRIMARY_STEP}...")
        yield ErrorEvent(message=REPLAY_FAILURE)
        return
    primary = compose_reply(query, "ChatGPT")
    secondary = compose_reply(query, "Claude")
    yield from _leg_events(PRIMARY_STEP, primary, chunk_words)
    yield from _leg_events(SECONDARY_STEP, secondary, chunk_words)
    yield CompleteEvent(final_response=primary, response_a=primary, response_b=secondary)
