import enum
import logging
from dataclasses import dataclass, field
from typing import Callable

from shared.constants import LEG_PRIMARY, LEG_SECONDARY
from shared.schemas import (
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StepCompleteEvent,
    StepEvent,
    StreamEvent,
    TerminatorEvent,
)
from warroom_client.content_filter import filter_content
from warroom_client.errors import DualStreamFailure, UpstreamError, WarRoomError
from warroom_client.reconciler import AccumulatorState, ContentFilter

logger = logging.getLogger(__name__)

LEG_ALIASES: dict[str, str] = {
    "gpt": LEG_PRIMARY,
    "chatgpt": LEG_PRIMARY,
    "openai": LEG_PRIMARY,
    "claude": LEG_SECONDARY,
    "anthropic": LEG_SECONDARY,
}

EMPTY_DUAL_STREAM_MESSAGE = "dual stream ended without a response"


class DualPhase(enum.Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


_TERMINAL_PHASES = frozenset({DualPhase.COMPLETED, DualPhase.FAILED, DualPhase.ABANDONED})


def leg_for_tag(tag: str) -> str:
    leg = LEG_ALIASES.get(tag.lower())
    if leg is None:
        logger.debug("unrecognised step tag=%s routed to %s leg", tag, LEG_PRIMARY)
        return LEG_PRIMARY
    return leg


@dataclass
class DualSessionState:
    legs: dict[str, AccumulatorState] = field(
        default_factory=lambda: {LEG_PRIMARY: AccumulatorState(), LEG_SECONDARY: AccumulatorState()}
    )
    current_tag: str | None = None
    untagged_chunks: int = 0

    @property
    def primary(self) -> AccumulatorState:
        return self.legs[LEG_PRIMARY]

    @property
    def secondary(self) -> AccumulatorState:
        return self.legs[LEG_SECONDARY]


@dataclass
class DualStreamCallbacks:
    on_start: Callable[[], None] | None = None
    on_step: Callable[[str, str], None] | None = None
    on_step_complete: Callable[[str, float], None] | None = None
    on_chunk: Callable[[str, bool, str], None] | None = None
    on_complete: Callable[[str, str, str], None] | None = None
    on_error: Callable[[str], None] | None = None


class DualStreamCoordinator:
    """Drives the two response legs multiplexed on one dual stream.

    Each chunk is appended to its leg and the whole filtered leg text is
    re-emitted, since dual-mode callers re-render the full message per leg.
    A chunk without a ``step`` goes to the leg named by the last ``step``
    event; when there has been none it is logged and counted, then routed
    to the primary leg.

    The coordinator never retries. A failed dual stream is reported through
    ``on_error`` and the caller decides whether to degrade to a single
    stream.
    """

    def __init__(
        self,
        callbacks: DualStreamCallbacks,
        content_filter: ContentFilter = filter_content,
    ) -> None:
        self.state = DualSessionState()
        self.phase = DualPhase.NOT_STARTED
        self.error: WarRoomError | None = None
        self._callbacks = callbacks
        self._filter = content_filter

    @property
    def finished(self) -> bool:
        return self.phase in _TERMINAL_PHASES

    def start(self) -> None:
        if self.phase is not DualPhase.NOT_STARTED:
            return
        self.phase = DualPhase.STARTED
        for leg in self.state.legs.values():
            leg.is_streaming = True
        if self._callbacks.on_start is not None:
            self._callbacks.on_start()

    def feed(self, event: StreamEvent) -> bool:
        if self.finished:
            return True
        if isinstance(event, StepEvent):
            self.state.current_tag = event.step
            if self._callbacks.on_step is not None:
                self._callbacks.on_step(event.step, event.message)
        elif isinstance(event, StepCompleteEvent):
            if self._callbacks.on_step_complete is not None:
                self._callbacks.on_step_complete(event.step, event.duration_ms)
        elif isinstance(event, ChunkEvent):
            self._on_chunk(event)
        elif isinstance(event, CompleteEvent):
            self._complete(
                final=event.final_response,
                primary=event.response_a,
                secondary=event.response_b,
            )
        elif isinstance(event, TerminatorEvent):
            self._complete()
        elif isinstance(event, ErrorEvent):
            logger.warning("dual stream error frame message=%s", event.message)
            self._fail(UpstreamError(event.message, code="upstream_error"))
        return self.finished

    def finish(self) -> None:
        """Natural end of the transport without a terminal frame."""
        if self.finished:
            return
        if not (self.state.primary.buffer or self.state.secondary.buffer):
            logger.warning("dual stream closed before any content arrived")
            self._fail(DualStreamFailure(EMPTY_DUAL_STREAM_MESSAGE, code="empty_stream"))
            return
        self._complete()

    def fail(self, error: WarRoomError) -> None:
        if not self.finished:
            self._fail(error)

    def abandon(self) -> None:
        if not self.finished:
            self.phase = DualPhase.ABANDONED
            self._stop_legs()

    def _resolve_tag(self, event: ChunkEvent) -> str:
        if event.step:
            return event.step
        if self.state.current_tag:
            return self.state.current_tag
        self.state.untagged_chunks += 1
        logger.warning(
            "chunk without step tag before any step event; routing to %s leg (count=%s)",
            LEG_PRIMARY,
            self.state.untagged_chunks,
        )
        return LEG_PRIMARY

    def _on_chunk(self, event: ChunkEvent) -> None:
        if not event.content:
            return
        tag = self._resolve_tag(event)
        leg = self.state.legs[leg_for_tag(tag)]
        leg.buffer += event.content
        if event.is_complete:
            leg.is_streaming = False
        self.phase = DualPhase.STREAMING
        if self._callbacks.on_chunk is not None:
            self._callbacks.on_chunk(self._filter(leg.buffer), event.is_complete, tag)

    def _stop_legs(self) -> None:
        for leg in self.state.legs.values():
            leg.is_streaming = False

    def _complete(
        self,
        final: str | None = None,
        primary: str | None = None,
        secondary: str | None = None,
    ) -> None:
        primary = primary or self.state.primary.buffer
        secondary = secondary or self.state.secondary.buffer
        final = final or primary or secondary
        self.phase = DualPhase.COMPLETED
        self._stop_legs()
        if self._callbacks.on_complete is not None:
            self._callbacks.on_complete(
                self._filter(final),
                self._filter(primary),
                self._filter(secondary),
            )

    def _fail(self, error: WarRoomError) -> None:
        self.phase = DualPhase.FAILED
        self.error = error
        self._stop_legs()
        if self._callbacks.on_error is not None:
            self._callbacks.on_error(error.message)
