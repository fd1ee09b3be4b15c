from shared.observability import configure_logging as _configure

CLIENT_LOGGERS = ("warroom_client",)
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(log_level: str) -> None:
    """Console logging for applications embedding the client."""
    _configure(log_level, CLIENT_LOGGERS, quiet=QUIET_LOGGERS)
