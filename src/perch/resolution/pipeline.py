"""Response resolution pipeline.

Drives a chain of resolvers to a fixed point. The value a handler
returns is offered to each resolver in order; the first one that
produces something new replaces it and the scan starts over from the
top, so a converted value (a ``to_json()`` result, a nested handler's
return) gets the full chain again. Resolution ends when the value is a
final response, and fails when a whole pass changes nothing.
"""

import logging
from collections.abc import Iterable
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.types import Transformation
from perch.errors import NotFound, UnresolvableValueError
from perch.http.request import Request
from perch.http.response import AnyResponse, is_final

logger = logging.getLogger("perch.resolution")

# Replacements allowed for one value before the chain is considered cyclic
MAX_REWRITES = 64


def _name(resolver: Any) -> str:
    return getattr(resolver, "__qualname__", None) or repr(resolver)


class ResolutionPipeline:
    """An immutable resolver chain.

    Built once per route at freeze time and shared by every request on
    that route; ``resolve`` keeps all of its state in local variables.
    """

    __slots__ = ("chain", "max_rewrites")

    def __init__(self, chain: Iterable[Transformation], *, max_rewrites: int = MAX_REWRITES) -> None:
        self.chain: tuple[Transformation, ...] = tuple(chain)
        self.max_rewrites = max_rewrites

    async def resolve(self, request: Request, value: Any) -> AnyResponse:
        """Turn *value* into a final response.

        Raises ``NotFound`` if the value is ``None`` (the handler declined)
        and ``UnresolvableValueError`` if no resolver claims it or the
        resolvers keep rewriting it without reaching a response. Errors
        raised by resolvers propagate unchanged.
        """
        original = value
        rewrites = 0

        while not is_final(value):
            if value is None:
                raise NotFound(f"No response for {request.method} {request.path!r}")

            for resolver in self.chain:
                result = await invoke(resolver, request, value)
                if result is None or result is value:
                    continue
                logger.debug(
                    "%s: %s -> %s", _name(resolver), type(value).__name__, type(result).__name__
                )
                value = result
                break
            else:
                raise UnresolvableValueError(original)

            rewrites += 1
            if rewrites > self.max_rewrites and not is_final(value):
                msg = f"no response after {self.max_rewrites} rewrites (resolver cycle?)"
                raise UnresolvableValueError(original, msg)

        return value

    def __repr__(self) -> str:
        return f"ResolutionPipeline({', '.join(_name(r) for r in self.chain)})"
