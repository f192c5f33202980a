"""Final HTTP responses with a chainable ``.with_*()`` API.

Both response types are frozen; every transformation returns a new
object. A value of either type is final: the resolution pipeline hands it
to the transport untouched.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

TEXT = "text/plain; charset=utf-8"
JSON = "application/json"
BINARY = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class Response:
    """A response whose whole body is in memory."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = TEXT
    headers: tuple[tuple[str, str], ...] = ()

    def with_status(self, status: int) -> Response:
        """Return a copy with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a copy with one more header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> Response:
        """Return a copy with additional headers."""
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        return replace(self, headers=(*self.headers, *pairs))

    def with_content_type(self, content_type: str) -> Response:
        """Return a copy with a different content type."""
        return replace(self, content_type=content_type)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), if set."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        """Body encoded as UTF-8 when it is text."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 when it is bytes."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body_bytes)


@dataclass(frozen=True, slots=True)
class StreamingResponse:
    """A response whose body is produced chunk by chunk.

    ``chunks`` may be a sync or async iterable of ``bytes`` or ``str``.
    The sender closes it on every exit path, which is what releases any
    resource (such as an open file) held by a generator.
    """

    chunks: Iterable[bytes | str] | AsyncIterable[bytes | str]
    status: int = 200
    content_type: str = BINARY
    headers: tuple[tuple[str, str], ...] = ()

    def with_status(self, status: int) -> StreamingResponse:
        """Return a copy with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> StreamingResponse:
        """Return a copy with one more header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(
        self, headers: Mapping[str, str] | Iterable[tuple[str, str]]
    ) -> StreamingResponse:
        """Return a copy with additional headers."""
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        return replace(self, headers=(*self.headers, *pairs))

    def with_content_type(self, content_type: str) -> StreamingResponse:
        """Return a copy with a different content type."""
        return replace(self, content_type=content_type)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), if set."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


type AnyResponse = Response | StreamingResponse


def is_final(value: object) -> bool:
    """True if *value* is a finished response the pipeline must not touch."""
    return isinstance(value, (Response, StreamingResponse))
