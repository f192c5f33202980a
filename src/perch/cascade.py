"""Try several request handlers in turn.

The first handler that does not decline wins. A handler declines by
raising an ``HTTPError`` whose status is in ``statuses`` (by default
``NotFound`` and ``MethodNotAllowed``), by returning ``None``, or by
returning a final response with such a status. Each handler sees its own
copy of the request context, so nothing a declining handler recorded
reaches the next one::

    site = Cascade(api, static_files, fallback)
"""

from collections.abc import Iterable
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.types import RequestHandler
from perch.errors import HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import is_final

DEFAULT_STATUSES = (404, 405)


class Cascade:
    """An ordered list of handlers acting as one."""

    __slots__ = ("_handlers", "statuses")

    def __init__(self, *handlers: RequestHandler, statuses: Iterable[int] = DEFAULT_STATUSES) -> None:
        self._handlers: list[RequestHandler] = list(handlers)
        self.statuses: frozenset[int] = frozenset(statuses)

    def add(self, handler: RequestHandler) -> "Cascade":
        """Append *handler*; returns the cascade so calls chain."""
        self._handlers.append(handler)
        return self

    @property
    def handlers(self) -> tuple[RequestHandler, ...]:
        return tuple(self._handlers)

    def _declines(self, value: Any) -> bool:
        if value is None:
            return True
        return is_final(value) and value.status in self.statuses

    async def __call__(self, request: Request) -> Any:
        """Return the first accepted result.

        When every handler declines, the last declining error is raised
        again (or the last declining response returned).
        """
        last_error: HTTPError | None = None
        last_response: Any = None

        for handler in self._handlers:
            try:
                result = await invoke(handler, request.fork())
            except HTTPError as exc:
                if exc.status not in self.statuses:
                    raise
                last_error, last_response = exc, None
                continue
            if self._declines(result):
                if result is not None:
                    last_error, last_response = None, result
                continue
            return result

        if last_response is not None:
            return last_response
        if last_error is not None:
            raise last_error
        raise NotFound(f"No handler accepted {request.method} {request.path!r}")

    def __repr__(self) -> str:
        return f"Cascade({', '.join(repr(h) for h in self._handlers)})"
