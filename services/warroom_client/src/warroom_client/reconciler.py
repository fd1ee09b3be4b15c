import logging
from dataclasses import dataclass
from typing import Callable

from shared.schemas import (
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StreamEvent,
    TerminatorEvent,
    WebSearchCompleteEvent,
    WebSearchStartEvent,
)
from warroom_client.content_filter import filter_content
from warroom_client.errors import UpstreamError, WarRoomError

logger = logging.getLogger(__name__)

ContentFilter = Callable[[str], str]


@dataclass
class AccumulatorState:
    buffer: str = ""
    is_streaming: bool = False


@dataclass
class StreamCallbacks:
    on_chunk: Callable[[str], None]
    on_complete: Callable[[], None]
    on_error: Callable[[str], None]
    on_web_search_start: Callable[[str], None] | None = None
    on_web_search_complete: Callable[[], None] | None = None


class SingleStreamReconciler:
    """Turns the events of one response into delta callbacks.

    Only the new content of each chunk is filtered and forwarded. Completion
    and error are mutually exclusive and fire at most once; anything fed
    after either is ignored.
    """

    def __init__(self, callbacks: StreamCallbacks, content_filter: ContentFilter = filter_content) -> None:
        self.state = AccumulatorState()
        self._callbacks = callbacks
        self._filter = content_filter
        self._terminal = False
        self.error: WarRoomError | None = None

    @property
    def finished(self) -> bool:
        return self._terminal

    @property
    def text(self) -> str:
        return self._filter(self.state.buffer)

    def start(self) -> None:
        if not self._terminal:
            self.state.is_streaming = True

    def feed(self, event: StreamEvent) -> bool:
        if self._terminal:
            return True
        if isinstance(event, ChunkEvent):
            if event.content:
                self.state.buffer += event.content
                self._callbacks.on_chunk(self._filter(event.content))
        elif isinstance(event, WebSearchStartEvent):
            if self._callbacks.on_web_search_start is not None:
                self._callbacks.on_web_search_start(event.query)
        elif isinstance(event, WebSearchCompleteEvent):
            if self._callbacks.on_web_search_complete is not None:
                self._callbacks.on_web_search_complete()
        elif isinstance(event, (CompleteEvent, TerminatorEvent)):
            self._complete()
        elif isinstance(event, ErrorEvent):
            logger.warning("upstream error frame message=%s", event.message)
            self._fail(UpstreamError(event.message, code="upstream_error"))
        return self._terminal

    def finish(self) -> None:
        """Natural end of the transport."""
        if not self._terminal:
            self._complete()

    def fail(self, error: WarRoomError) -> None:
        if not self._terminal:
            self._fail(error)

    def abandon(self) -> None:
        self._terminal = True
        self.state.is_streaming = False

    def _complete(self) -> None:
        self._terminal = True
        self.state.is_streaming = False
        self._callbacks.on_complete()

    def _fail(self, error: WarRoomError) -> None:
        self._terminal = True
        self.state.is_streaming = False
        self.error = error
        self._callbacks.on_error(error.message)
