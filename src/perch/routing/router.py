"""Trie-based path matcher.

Routes are added during setup and the trie is frozen by ``compile()``.
At request time ``match()`` walks one node per path segment, preferring
static segments, then typed captures in registration order, then a
trailing ``path`` catch-all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from perch.errors import ConfigurationError, MethodNotAllowed, NotFound
from perch.routing.params import CONVERTERS
from perch.routing.route import ANY_METHOD, PathSegment, Route, RouteMatch

_CAPTURE = re.compile(r"^(?:\{(?P<curly>[^{}]*)\}|<(?P<angle>[^<>]*)>)$")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route template into segments.

    ``{name}`` and ``<name>`` are equivalent; either may carry a type
    after a colon::

        "/users/{id:int}"   -> [PathSegment("users"), PathSegment("{id:int}", True, "id", "int")]
        "/clients/<id>"     -> [PathSegment("clients"), PathSegment("<id>", True, "id", "str")]
        "/files/{rest:path}"

    Raises ``ConfigurationError`` for malformed captures, unknown types,
    duplicate names or a ``path`` capture that is not last.
    """
    segments: list[PathSegment] = []
    seen: set[str] = set()
    parts = [part for part in path.strip("/").split("/") if part]

    for index, part in enumerate(parts):
        capture = _CAPTURE.match(part)
        if capture is None:
            if any(ch in part for ch in "{}<>"):
                msg = f"Malformed path segment {part!r} in route {path!r}."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part))
            continue

        inner = capture.group("curly") if capture.group("curly") is not None else capture.group("angle")
        name, _, param_type = inner.partition(":")
        param_type = param_type or "str"
        if not name.isidentifier():
            msg = f"Capture name {name!r} in route {path!r} is not a valid identifier."
            raise ConfigurationError(msg)
        if param_type not in CONVERTERS:
            known = ", ".join(sorted(CONVERTERS))
            msg = f"Unknown capture type {param_type!r} in route {path!r}. Known types: {known}."
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Capture {name!r} appears twice in route {path!r}."
            raise ConfigurationError(msg)
        if param_type == "path" and index != len(parts) - 1:
            msg = f"The path capture {name!r} must be the last segment of route {path!r}."
            raise ConfigurationError(msg)

        seen.add(name)
        segments.append(PathSegment(value=part, is_param=True, param_name=name, param_type=param_type))
    return segments


def capture_names(path: str) -> dict[str, str]:
    """Map each capture name of *path* to its template type."""
    return {
        seg.param_name: seg.param_type
        for seg in parse_path(path)
        if seg.is_param and seg.param_name is not None
    }


@dataclass(slots=True)
class _Node:
    """A trie node. Mutable until the router compiles."""

    children: dict[str, _Node] = field(default_factory=dict)
    params: list[_ParamEdge] = field(default_factory=list)
    catch_all: _CatchAll | None = None
    routes_by_method: dict[str, Route] = field(default_factory=dict)


@dataclass(slots=True)
class _ParamEdge:
    name: str
    param_type: str
    regex: re.Pattern[str]
    node: _Node


@dataclass(slots=True)
class _CatchAll:
    name: str
    node: _Node


def _lookup(node: _Node, method: str) -> Route | None:
    return node.routes_by_method.get(method) or node.routes_by_method.get(ANY_METHOD)


class Router:
    """Compiled route trie.

    Usage::

        router = Router()
        router.add(route)
        router.compile()
        match = router.match("GET", "/clients/42")
    """

    __slots__ = ("_compiled", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _Node()
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before ``compile()``."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _CatchAll(name=seg.param_name or "path", node=_Node())
                node = node.catch_all.node
            elif seg.is_param:
                edge = next(
                    (
                        e
                        for e in node.params
                        if e.name == seg.param_name and e.param_type == seg.param_type
                    ),
                    None,
                )
                if edge is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    edge = _ParamEdge(
                        name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_Node(),
                    )
                    node.params.append(edge)
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _Node())

        for method in route.methods:
            if method in node.routes_by_method:
                msg = f"Duplicate route: {method} {route.path!r} is already registered."
                raise ConfigurationError(msg)
            node.routes_by_method[method] = route
        self._routes.append(route)

    @property
    def routes(self) -> list[Route]:
        """Registered routes in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request against the trie.

        Raises ``NotFound`` if no route matches the path and
        ``MethodNotAllowed`` if the path matches under other methods only.
        """
        parts = [part for part in path.strip("/").split("/") if part]
        found = self._match(self._root, parts, 0, {}, method)
        if found is None:
            found = self._match(self._root, parts, 0, {}, None)
            if found is None:
                raise NotFound(f"No route matches {method} {path!r}")
            node, _ = found
            raise MethodNotAllowed(frozenset(node.routes_by_method))

        node, params = found
        route = _lookup(node, method)
        assert route is not None
        return RouteMatch(route=route, path_params=params)

    def _match(
        self,
        node: _Node,
        parts: list[str],
        index: int,
        params: dict[str, str],
        method: str | None,
    ) -> tuple[_Node, dict[str, str]] | None:
        """Depth-first match; ``method=None`` accepts any node with routes."""
        if index == len(parts):
            if node.routes_by_method and (method is None or _lookup(node, method)):
                return node, params
            return None

        part = parts[index]

        child = node.children.get(part)
        if child is not None:
            found = self._match(child, parts, index + 1, params, method)
            if found is not None:
                return found

        for edge in node.params:
            if edge.regex.match(part):
                found = self._match(
                    edge.node, parts, index + 1, {**params, edge.name: part}, method
                )
                if found is not None:
                    return found

        if node.catch_all is not None:
            tail = node.catch_all.node
            if tail.routes_by_method and (method is None or _lookup(tail, method)):
                return tail, {**params, node.catch_all.name: "/".join(parts[index:])}

        return None
