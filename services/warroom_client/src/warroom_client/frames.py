"""Classify wire lines into stream events.

The parser is tolerant on purpose: backends interleave and split frames, so
a line that is not valid JSON, is not an object, carries an unknown
``type`` or fails validation is dropped and the stream continues. Drops are
logged at DEBUG and reported to ``on_dropped`` when one is given.
"""
import json
import logging
from typing import AsyncIterable, AsyncIterator, Callable

from pydantic import TypeAdapter, ValidationError

from shared.constants import DONE_SENTINEL, WIRE_EVENT_TYPES
from shared.schemas import StreamEvent, TerminatorEvent, WireEvent

logger = logging.getLogger(__name__)

DroppedHook = Callable[[str, str], None]

_SSE_IGNORED_FIELDS = ("event:", "id:", "retry:", ":")
_wire_event_adapter: TypeAdapter = TypeAdapter(WireEvent)


class FrameParser:
    def __init__(self, on_dropped: DroppedHook | None = None) -> None:
        self._on_dropped = on_dropped
        self.dropped = 0

    def _drop(self, line: str, reason: str) -> None:
        self.dropped += 1
        logger.debug("dropped frame reason=%s line=%r", reason, line[:200])
        if self._on_dropped is not None:
            self._on_dropped(line, reason)

    def parse(self, line: str) -> StreamEvent | None:
        stripped = line.strip()
        if not stripped:
            return None
        if stripped.startswith("data:"):
            body = stripped[5:].strip()
            if body == DONE_SENTINEL:
                return TerminatorEvent()
        elif stripped.startswith(_SSE_IGNORED_FIELDS):
            return None
        else:
            body = stripped

        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            self._drop(line, "invalid_json")
            return None
        if not isinstance(data, dict):
            self._drop(line, "not_an_object")
            return None
        event_type = data.get("type")
        if not isinstance(event_type, str) or event_type not in WIRE_EVENT_TYPES:
            self._drop(line, "unknown_type")
            return None
        try:
            return _wire_event_adapter.validate_python(data)
        except ValidationError:
            self._drop(line, "invalid_frame")
            return None


async def iter_events(
    lines: AsyncIterable[str],
    parser: FrameParser | None = None,
) -> AsyncIterator[StreamEvent]:
    """Yield events in arrival order, stopping after the terminator."""
    parser = parser or FrameParser()
    async for line in lines:
        event = parser.parse(line)
        if event is None:
            continue
        yield event
        if isinstance(event, TerminatorEvent):
            return
