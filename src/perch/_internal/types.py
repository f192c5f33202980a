"""Shared type aliases used across perch modules."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from perch.http.request import Request

# Route handler: user function with a variable signature
Handler: TypeAlias = Callable[..., Any]

# Transformation / resolver: (request, value) -> value | None, sync or async
Transformation: TypeAlias = Callable[["Request", Any], Any]

# Anything the transport can drive: request -> awaitable response
RequestHandler: TypeAlias = Callable[["Request"], Awaitable[Any]]
