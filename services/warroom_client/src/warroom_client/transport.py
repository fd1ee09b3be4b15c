import codecs
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterable, AsyncIterator

import httpx

from warroom_client.errors import TransportError, extract_error_message, retryable_for_status

logger = logging.getLogger(__name__)


async def iter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Decode a byte stream incrementally and yield complete lines.

    A multi-byte UTF-8 sequence split across two chunks is held by the
    decoder until it is complete. Text after the last newline is kept and
    prefixed to the next chunk; whatever is left when the source ends is
    yielded as a final line.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    async for chunk in chunks:
        if not chunk:
            continue
        pending += decoder.decode(chunk)
        if "\n" not in pending:
            continue
        *lines, pending = pending.split("\n")
        for line in lines:
            yield line.rstrip("\r")
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending.rstrip("\r")


async def _status_error(resp: httpx.Response) -> TransportError:
    raw = await resp.aread()
    message = f"Backend API error: {resp.status_code}"
    code = None
    try:
        message, code = extract_error_message(json.loads(raw), message)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("non-json backend error status=%s", resp.status_code)
    return TransportError(
        message=message,
        code=code or "backend_status",
        status_code=resp.status_code,
        retryable=retryable_for_status(resp.status_code),
    )


@asynccontextmanager
async def open_stream(
    http: httpx.AsyncClient,
    url: str,
    payload: dict,
    headers: dict[str, str],
) -> AsyncIterator[AsyncIterator[bytes]]:
    """POST ``payload`` and yield the response body as raw byte chunks.

    Nothing is yielded for a non-2xx response. httpx failures raised while
    the body is consumed are converted to ``TransportError`` as well.
    """
    try:
        async with http.stream("POST", url, json=payload, headers=headers) as resp:
            if not resp.is_success:
                raise await _status_error(resp)
            yield resp.aiter_bytes()
    except httpx.TimeoutException as exc:
        raise TransportError(
            message="upstream timeout",
            code="upstream_timeout",
            retryable=True,
        ) from exc
    except httpx.RequestError as exc:
        raise TransportError(
            message="upstream connection error",
            code="upstream_unavailable",
            retryable=True,
        ) from exc
