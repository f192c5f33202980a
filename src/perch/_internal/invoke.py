"""Uniform calls into user code that may be ``def`` or ``async def``.

Handlers, resolvers, nested handlers and bootstrap factories can all be
either kind. Every call site goes through :func:`invoke` so the awaitable
check lives in one place.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result when it is awaitable.

    ::

        result = await invoke(handler, request)
        value = await invoke(resolver, request, value)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
