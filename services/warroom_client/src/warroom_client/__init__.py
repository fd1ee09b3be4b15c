from warroom_client.client import StreamHandle, WarRoomClient
from warroom_client.content_filter import SUBSTITUTIONS, filter_content
from warroom_client.coordinator import DualStreamCallbacks, DualStreamCoordinator
from warroom_client.errors import TransportError, UpstreamError, WarRoomError
from warroom_client.fallback import TurnResult, stream_with_fallback
from warroom_client.reconciler import SingleStreamReconciler, StreamCallbacks

__all__ = [
    "DualStreamCallbacks",
    "DualStreamCoordinator",
    "SUBSTITUTIONS",
    "SingleStreamReconciler",
    "StreamCallbacks",
    "StreamHandle",
    "TransportError",
    "TurnResult",
    "UpstreamError",
    "WarRoomClient",
    "WarRoomError",
    "filter_content",
    "stream_with_fallback",
]
