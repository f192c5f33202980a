"""Immutable HTTP request.

Metadata is frozen when the transport builds the request; the body is
read asynchronously. The one sanctioned escape hatch is ``context``, a
per-request dict where resolvers and transformations leave derived data
(content-type overrides, extra headers) for later resolvers to observe.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from perch._internal.asgi import Message, Receive, Scope
from perch.http.headers import Headers
from perch.http.query import QueryParams

_MISSING: Any = object()


async def _no_body() -> Message:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path_params`` holds the named captures of the matched route. It is
    the same mapping the handler signature adapter binds from, so
    ``request.param("id")`` and a handler parameter named ``id`` always
    agree.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    path_params: Mapping[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None
    root_path: str = ""

    # Derived per-request data shared by every copy of this request
    context: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    _receive: Receive = field(default=_no_body, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Path captures --

    def param(self, name: str, default: Any = _MISSING) -> Any:
        """Return the path capture *name*.

        Raises ``KeyError`` when the route declared no such capture and no
        *default* is given.
        """
        if default is _MISSING:
            return self.path_params[name]
        return self.path_params.get(name, default)

    # -- Derived copies --

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        """Copy carrying route captures; context and body cache are shared."""
        return replace(self, path_params=dict(path_params))

    def fork(self) -> Request:
        """Copy with its own context dict, seeded from this one.

        Context written through the copy stays invisible here. The body
        cache is still shared.
        """
        return replace(self, context=dict(self.context))

    def with_path(self, path: str, *, root_path: str | None = None) -> Request:
        """Copy addressed to *path*, used when forwarding to a mounted handler."""
        return replace(
            self,
            path=path,
            root_path=self.root_path if root_path is None else root_path,
            path_params={},
        )

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    # -- Async body access --

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield the body in the chunks the transport delivers."""
        if "_body" in self._cache:
            yield self._cache["_body"]
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        """Read the full body. Cached after the first read."""
        if "_body" not in self._cache:
            self._cache["_body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["_body"]

    async def text(self) -> str:
        """Body decoded as UTF-8."""
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(await self.body())

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            root_path=scope.get("root_path", ""),
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        path_params: Mapping[str, str] | None = None,
    ) -> Request:
        """Create a Request without a transport (sub-requests, unit tests)."""
        query = b""
        if "?" in path:
            path, raw_query = path.split("?", 1)
            query = raw_query.encode("latin-1")

        async def receive() -> Message:
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(
            method=method.upper(),
            path=path,
            headers=Headers.from_dict(headers or {}),
            query=QueryParams(query),
            path_params=dict(path_params or {}),
            _receive=receive,
        )
