class WarRoomError(Exception):
    def __init__(
        self,
        message: str,
        code: str = "warroom_error",
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.retryable = retryable


class TransportError(WarRoomError):
    """The connection failed or the backend answered with a non-2xx status."""


class UpstreamError(WarRoomError):
    """The backend sent an explicit ``error`` frame."""


class BackendError(WarRoomError):
    """A non-streaming call was rejected by the backend."""


class AuthenticationRequired(WarRoomError):
    pass


class DualStreamFailure(WarRoomError):
    pass


def retryable_for_status(status_code: int) -> bool:
    return status_code in (408, 429) or status_code >= 500


def extract_error_message(payload, default: str) -> tuple[str, str | None]:
    # {"error": "..."} | {"error": {"message": ..., "code": ...}} | {"message": ...}
    if not isinstance(payload, dict):
        return default, None
    err = payload.get("error")
    if isinstance(err, dict):
        return str(err.get("message") or default), err.get("code")
    if isinstance(err, str) and err:
        return err, payload.get("code")
    message = payload.get("message") or payload.get("detail")
    if isinstance(message, str) and message:
        return message, payload.get("code")
    return default, payload.get("code")
