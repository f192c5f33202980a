"""Handler signature adapter.

A handler declares only the parameters it needs::

    def index(): ...
    def show(request: Request): ...
    def client(request: Request, id: str): ...
    def item(id: int): ...

``describe_handler`` inspects the signature once, when the route is
registered, and returns a ``HandlerDescriptor``: the binding plan used
for every request afterwards. Request-time invocation reads the plan
and never calls ``inspect`` again.

Binding rules:

1. The first parameter may be the request, recognised by a ``Request``
   annotation or, when unannotated, by the name ``request``.
2. Every other parameter binds by name to a capture of the route
   template. ``str``/unannotated, ``int`` and ``float`` are supported.
3. Anything else is a ``RegistrationError``: unknown names, a request
   parameter that is not first, ``*args``/``**kwargs``, unsupported
   annotations.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import NotFound, RegistrationError
from perch.http.request import Request
from perch.routing.params import ANNOTATION_CONVERTERS
from perch.routing.router import capture_names

_EMPTY = inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class PathParam:
    """A handler parameter bound to the route capture of the same name."""

    name: str
    converter: Callable[[str], Any] = str
    keyword_only: bool = False

    def convert(self, raw: str) -> Any:
        """Convert the captured string; unconvertible captures do not match."""
        try:
            return self.converter(raw)
        except (TypeError, ValueError) as exc:
            msg = f"Path parameter {self.name!r} cannot be converted: {raw!r}"
            raise NotFound(msg) from exc


@dataclass(frozen=True, slots=True)
class HandlerDescriptor:
    """Precomputed binding plan for one handler. Immutable once built."""

    handler: Callable[..., Any]
    wants_request: bool = False
    path_params: tuple[PathParam, ...] = ()

    def arguments(self, request: Request) -> tuple[list[Any], dict[str, Any]]:
        """Assemble positional and keyword arguments from a live request."""
        args: list[Any] = [request] if self.wants_request else []
        kwargs: dict[str, Any] = {}
        captures = request.path_params
        for param in self.path_params:
            value = param.convert(captures[param.name])
            if param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)
        return args, kwargs

    async def invoke(self, request: Request) -> Any:
        """Call the handler for *request*; its return value is the captured value."""
        args, kwargs = self.arguments(request)
        return await invoke(self.handler, *args, **kwargs)


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__qualname__


def _is_request_param(param: inspect.Parameter) -> bool:
    if param.annotation is _EMPTY:
        return param.name == "request"
    return isinstance(param.annotation, type) and issubclass(param.annotation, Request)


def describe_handler(handler: Callable[..., Any], path: str) -> HandlerDescriptor:
    """Build the binding plan for *handler* on route template *path*.

    Raises ``RegistrationError`` if any parameter cannot be bound.
    """
    if not callable(handler):
        msg = f"Route {path!r}: handler {handler!r} is not callable."
        raise RegistrationError(msg, handler=handler)

    try:
        sig = inspect.signature(handler, eval_str=True)
    except (TypeError, ValueError, NameError) as exc:
        msg = f"Route {path!r}: cannot inspect the signature of {_handler_name(handler)}: {exc}"
        raise RegistrationError(msg, handler=handler) from exc

    captures = capture_names(path)
    name = _handler_name(handler)
    wants_request = False
    path_params: list[PathParam] = []

    for position, param in enumerate(sig.parameters.values()):
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            msg = (
                f"Route {path!r}: {name} declares *{param.name}; handlers must "
                f"name each parameter they use."
            )
            raise RegistrationError(msg, handler=handler, parameter=param.name)

        if _is_request_param(param):
            if position != 0:
                msg = f"Route {path!r}: the request parameter of {name} must come first."
                raise RegistrationError(msg, handler=handler, parameter=param.name)
            if param.kind is inspect.Parameter.KEYWORD_ONLY:
                msg = f"Route {path!r}: the request parameter of {name} cannot be keyword-only."
                raise RegistrationError(msg, handler=handler, parameter=param.name)
            wants_request = True
            continue

        if param.name not in captures:
            available = ", ".join(sorted(captures)) or "none"
            msg = (
                f"Route {path!r}: unbound parameter {param.name!r} in {name}. "
                f"Path captures: {available}."
            )
            raise RegistrationError(msg, handler=handler, parameter=param.name)

        annotation = str if param.annotation is _EMPTY else param.annotation
        converter = ANNOTATION_CONVERTERS.get(annotation)
        if converter is None:
            supported = ", ".join(t.__name__ for t in ANNOTATION_CONVERTERS)
            msg = (
                f"Route {path!r}: parameter {param.name!r} of {name} is annotated "
                f"{annotation!r}; supported types are {supported}."
            )
            raise RegistrationError(msg, handler=handler, parameter=param.name)

        path_params.append(
            PathParam(
                name=param.name,
                converter=converter,
                keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
            )
        )

    return HandlerDescriptor(
        handler=handler,
        wants_request=wants_request,
        path_params=tuple(path_params),
    )
