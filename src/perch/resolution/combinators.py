"""Transformation combinators.

A transformation is any ``(request, value) -> value | None`` callable,
sync or async, where ``None`` declines. Two operators build bigger ones:

``merge(a, b, ...)``
    One transformation that runs its steps left to right on the same
    request. A declining step leaves the value as it was. Once a step
    turns a raw value into a final response the remaining steps are
    skipped; steps given a final response all run, each changing it.
    Merged steps are flattened, so ``merge(merge(a, b), c)`` and
    ``merge(a, merge(b, c))`` are the same chain.

``apply_to(t, value)``
    A nested handler that, when the pipeline calls it with the request,
    runs ``t`` against ``value``. This is how a handler transforms its
    own return value inline::

        @app.get("/page")
        def page():
            return apply_to(content_type("html"), "<h1>Hi</h1>")
"""

from dataclasses import dataclass
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.types import Transformation
from perch.http.request import Request
from perch.http.response import is_final


@dataclass(frozen=True, slots=True)
class Merged:
    """Several transformations applied in sequence as one."""

    steps: tuple[Transformation, ...]

    async def __call__(self, request: Request, value: Any) -> Any:
        current = value
        for step in self.steps:
            result = await invoke(step, request, current)
            if result is None:
                continue
            finalized = is_final(result) and not is_final(current)
            current = result
            if finalized:
                break
        if current is value:
            return None
        return current


def merge(*transformations: Transformation) -> Merged:
    """Combine transformations into one applied left to right."""
    steps: list[Transformation] = []
    for transformation in transformations:
        if isinstance(transformation, Merged):
            steps.extend(transformation.steps)
        else:
            steps.append(transformation)
    return Merged(tuple(steps))


@dataclass(frozen=True, slots=True)
class Applied:
    """A transformation bound to a value, awaiting the request."""

    transformation: Transformation
    value: Any

    async def __call__(self, request: Request) -> Any:
        result = await invoke(self.transformation, request, self.value)
        if result is None:
            return self.value
        return result


def apply_to(transformation: Transformation, value: Any) -> Applied:
    """Bind *transformation* to *value*; the pipeline supplies the request."""
    return Applied(transformation, value)
