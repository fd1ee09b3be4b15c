import logging
from dataclasses import dataclass
from typing import Callable

from warroom_client.client import PROVIDER_OPENAI, MessagesInput, WarRoomClient, coerce_messages
from warroom_client.coordinator import DualPhase, DualStreamCallbacks
from warroom_client.errors import DualStreamFailure
from warroom_client.reconciler import StreamCallbacks

logger = logging.getLogger(__name__)

MODE_DUAL = "dual"
MODE_SINGLE = "single"


@dataclass
class TurnResult:
    mode: str
    fallback_reason: DualStreamFailure | None = None


async def stream_with_fallback(
    client: WarRoomClient,
    messages: MessagesInput,
    dual_callbacks: DualStreamCallbacks,
    callbacks: StreamCallbacks,
    context_files: str = "",
    agent_id: str | None = None,
    fallback_provider: str = PROVIDER_OPENAI,
    on_fallback: Callable[[str], None] | None = None,
) -> TurnResult:
    """Run one dual-AI turn, degrading to a single stream if it fails.

    The dual stream runs to its end first and reports its failure through
    ``dual_callbacks.on_error``; only then is the single stream opened,
    with the same messages and agent.
    """
    messages = coerce_messages(messages)
    coordinator = await client.stream_dual(
        messages,
        dual_callbacks,
        context_files=context_files,
        agent_id=agent_id,
    )
    if coordinator.phase is not DualPhase.FAILED:
        return TurnResult(mode=MODE_DUAL)

    cause = coordinator.error
    reason = DualStreamFailure(
        cause.message,
        code=cause.code,
        status_code=cause.status_code,
        retryable=cause.retryable,
    )
    logger.warning("dual stream failed, falling back to %s: %s", fallback_provider, reason.message)
    if on_fallback is not None:
        on_fallback(reason.message)
    await client.stream_provider(fallback_provider, messages, callbacks, agent_id=agent_id)
    return TurnResult(mode=MODE_SINGLE, fallback_reason=reason)
