"""Request ids and logging setup shared by the client and the replay backend."""
import logging
import logging.config
import re
import uuid
from contextvars import ContextVar
from typing import Iterable

REQUEST_ID_HEADER = "X-Request-ID"
_NO_REQUEST = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=_NO_REQUEST)


def set_request_id(value: str) -> None:
    _request_id.set(value)


def new_request_id() -> str:
    value = uuid.uuid4().hex
    _request_id.set(value)
    return value


def get_request_id() -> str:
    return _request_id.get()


def request_id_headers() -> dict[str, str]:
    value = _request_id.get()
    if not value or value == _NO_REQUEST:
        return {}
    return {REQUEST_ID_HEADER: value}


# Applied in order. Wire fields that carry user text are masked like credentials.
_REDACTIONS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}"), "[redacted_email]"),
    (
        re.compile(r'("(?:content|userQuery|contextFiles|agentContext)"\s*:\s*")[^"]*(")', re.IGNORECASE),
        r"\1[redacted]\2",
    ),
    (re.compile(r"(\bcontent\s*[:=]\s*)[^\s,;]+", re.IGNORECASE), r"\1[redacted]"),
    (re.compile(r"\bbearer\s+[\w\-.~+/]+=*", re.IGNORECASE), "Bearer [redacted]"),
    (
        re.compile(
            r"\b(authorization|api_?key|(?:access_|refresh_)?token|secret|password)\b\s*[:=]\s*[^\s,;]+",
            re.IGNORECASE,
        ),
        r"\1=[redacted]",
    ),
)


def redact_text(text: str) -> str:
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class RedactionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_text(record.getMessage())
        record.args = ()
        return True


def configure_logging(log_level: str, loggers: Iterable[str], quiet: Iterable[str] = ()) -> None:
    """Send ``loggers`` at ``log_level`` and ``quiet`` at WARNING to one console handler."""
    console = {"handlers": ["console"], "propagate": False}
    logger_config = {name: {**console, "level": log_level} for name in loggers}
    logger_config.update({name: {**console, "level": "WARNING"} for name in quiet})
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_id": {"()": RequestIdFilter},
                "redact": {"()": RedactionFilter},
            },
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s %(name)s request_id=%(request_id)s %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "filters": ["request_id", "redact"],
                    "level": log_level,
                }
            },
            "loggers": logger_config,
            "root": {"handlers": ["console"], "level": log_level},
        }
    )
