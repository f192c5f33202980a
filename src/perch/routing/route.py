"""Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from perch.routing.signature import HandlerDescriptor

# Pseudo-method for routes that accept every verb (mounts)
ANY_METHOD = "*"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``users``       (is_param=False)
    Param:   ``{id}``        (is_param=True, param_name="id")
    Typed:   ``{id:int}``    (is_param=True, param_name="id", param_type="int")
    Angled:  ``<id>``        same as ``{id}``
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Never mutated after registration.

    ``middleware`` holds the route-scoped transformations in registration
    order; ``descriptor`` is the precomputed binding plan for ``handler``.
    """

    path: str
    methods: frozenset[str]
    descriptor: HandlerDescriptor
    middleware: tuple[Any, ...] = ()

    @property
    def handler(self) -> Any:
        return self.descriptor.handler


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: Mapping[str, str]
