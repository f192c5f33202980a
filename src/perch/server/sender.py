"""ASGI response sending: translates perch responses to ASGI messages.

Handles both in-memory responses and streamed ones.
"""

import logging
from collections.abc import AsyncIterable

from perch._internal.asgi import Send
from perch.http.response import Response, StreamingResponse

logger = logging.getLogger("perch.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(content_type: str, headers: tuple[tuple[str, str], ...]) -> list[tuple[bytes, bytes]]:
    raw = [(b"content-type", content_type.encode("latin-1"))]
    raw.extend((name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers)
    return raw


def _encode_chunk(chunk: str | bytes) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    msg = f"Stream chunks must be bytes or str, got {type(chunk).__name__}"
    raise TypeError(msg)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a Response into ASGI send() calls.

    For ``HEAD`` requests the headers (including Content-Length) describe
    the body that would have been sent, but no body is written.
    """
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": b"" if head else body})


async def send_streaming_response(response: StreamingResponse, send: Send, *, head: bool = False) -> None:
    """Send a streamed response one chunk per ASGI body message.

    Headers go out first. Without an explicit Content-Length the server
    frames the body with chunked transfer encoding. The chunk source is
    closed however sending ends (completion, a failing chunk, or a
    client disconnect) so resources held by generators are released; a
    failure is logged and re-raised after the stream is terminated.
    """
    raw_headers = _raw_headers(response.content_type, response.headers)
    if response.header("content-length") is None:
        raw_headers.append((b"transfer-encoding", b"chunked"))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})

    chunks = response.chunks
    try:
        if not head and _body_allowed(response.status):
            if isinstance(chunks, AsyncIterable):
                async for chunk in chunks:
                    if chunk:
                        await send({"type": "http.response.body", "body": _encode_chunk(chunk), "more_body": True})
            else:
                for chunk in chunks:
                    if chunk:
                        await send({"type": "http.response.body", "body": _encode_chunk(chunk), "more_body": True})
    except Exception:
        logger.exception("Streaming response failed mid-body")
        raise
    finally:
        await _close(chunks)

    await send({"type": "http.response.body", "body": b"", "more_body": False})


async def _close(chunks: object) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()
        return
    close = getattr(chunks, "close", None)
    if close is not None:
        close()
