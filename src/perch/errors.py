"""Perch exception hierarchy.

Shared by the router, the signature adapter, the resolution pipeline and
the transport bridge so every module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when setup or deployment configuration is invalid."""


class RegistrationError(ConfigurationError):
    """A handler cannot be bound to its route.

    Raised while a route is being registered, never while serving, so a
    bad route table fails the process before it accepts a request.
    """

    def __init__(self, message: str, *, handler: Any = None, parameter: str | None = None) -> None:
        super().__init__(message)
        self.handler = handler
        self.parameter = parameter


def type_tag(value: Any) -> str:
    """Descriptive type name for diagnostics, e.g. ``myapp.models.Person``."""
    cls = type(value)
    module = cls.__module__
    if module == "builtins":
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


class UnresolvableValueError(PerchError):
    """No resolver in the chain turned a value into a response."""

    def __init__(self, value: Any, detail: str = "") -> None:
        self.value = value
        self.type_tag = type_tag(value)
        message = f"Cannot resolve a value of type {self.type_tag} to a response"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, the cascade or handlers. The transport bridge
    turns it into a plain response with the same status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing handled the request.

    This is the normal "decline" outcome: routers raise it when no route
    matches and cascades catch it to try the next handler.
    """

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers=(("Allow", allow_value),),
        )
