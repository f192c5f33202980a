"""Built-in resolvers.

Each resolver has the transformation shape ``(request, value)`` and
either returns a new value or ``None`` to decline. ``BUILTIN_RESOLVERS``
lists them most specific first; that order is part of the contract:

1. final response             -> itself
2. bytes / bytearray / memoryview -> ``application/octet-stream``
3. byte stream (iterator, async iterable) -> streamed ``application/octet-stream``
4. ``str``                    -> ``text/plain; charset=utf-8``
5. ``dict`` / ``list`` / ``tuple`` -> ``application/json``
6. ``to_json()`` object or dataclass instance -> its structured data (re-fed)
7. ``os.PathLike``            -> streamed file
8. nested handler (callable)  -> its return value (re-fed)
"""

import dataclasses
import json as json_module
import os
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import NotFound, UnresolvableValueError
from perch.http.files import file_response
from perch.http.request import Request
from perch.http.response import BINARY, JSON, TEXT, Response, StreamingResponse, is_final
from perch.resolution.overrides import apply_overrides


def _has_conversion(value: Any) -> bool:
    # Callables are nested handlers, even callable dataclasses
    if isinstance(value, type) or callable(value):
        return False
    return callable(getattr(value, "to_json", None)) or dataclasses.is_dataclass(value)


def _convert(value: Any) -> Any:
    if callable(getattr(value, "to_json", None)):
        return value.to_json()
    return dataclasses.asdict(value)


def _json_default(value: Any) -> Any:
    if _has_conversion(value):
        return _convert(value)
    raise UnresolvableValueError(value, "not JSON serializable")


def dump_json(value: Any) -> str:
    """Serialize structured data, converting nested ``to_json()`` objects."""
    return json_module.dumps(value, default=_json_default, ensure_ascii=False)


def resolve_response(request: Request, value: Any) -> Any:
    """Final responses pass through untouched."""
    if is_final(value):
        return value
    return None


def resolve_bytes(request: Request, value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return apply_overrides(request, Response(body=bytes(value), content_type=BINARY))
    return None


_CHUNK_TYPES = (bytes, bytearray, memoryview, str)
_EXHAUSTED: Any = object()


def _check_chunk(chunk: Any, source: Any) -> Any:
    if isinstance(chunk, _CHUNK_TYPES):
        return chunk
    raise UnresolvableValueError(source, f"stream yielded {type(chunk).__name__}, not bytes or str")


def _close_sync(iterator: Any) -> None:
    close = getattr(iterator, "close", None)
    if close is not None:
        close()


async def _close_async(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


def _checked_sync(first: Any, iterator: Iterator[Any], source: Any) -> Iterator[Any]:
    try:
        if first is not _EXHAUSTED:
            yield first
            for chunk in iterator:
                yield _check_chunk(chunk, source)
    finally:
        _close_sync(iterator)


async def _checked_async(first: Any, iterator: Any, source: Any) -> AsyncIterator[Any]:
    try:
        if first is not _EXHAUSTED:
            yield first
            async for chunk in iterator:
                yield _check_chunk(chunk, source)
    finally:
        await _close_async(iterator)


async def resolve_stream(request: Request, value: Any) -> Any:
    """Iterators and async iterables are streamed chunk by chunk.

    The first chunk is pulled here, before any header is sent, so a stream
    of the wrong kind of item is rejected as unresolvable. Later chunks
    are checked as they are sent.
    """
    if isinstance(value, AsyncIterable):
        iterator = aiter(value)
        first = await anext(iterator, _EXHAUSTED)
        if first is not _EXHAUSTED and not isinstance(first, _CHUNK_TYPES):
            await _close_async(iterator)
            _check_chunk(first, value)
        chunks: Any = _checked_async(first, iterator, value)
    elif isinstance(value, Iterator):
        first = next(value, _EXHAUSTED)
        if first is not _EXHAUSTED and not isinstance(first, _CHUNK_TYPES):
            _close_sync(value)
            _check_chunk(first, value)
        chunks = _checked_sync(first, value, value)
    else:
        return None
    return apply_overrides(request, StreamingResponse(chunks=chunks, content_type=BINARY))


def resolve_text(request: Request, value: Any) -> Any:
    if isinstance(value, str):
        return apply_overrides(request, Response(body=value, content_type=TEXT))
    return None


def resolve_json(request: Request, value: Any) -> Any:
    if isinstance(value, (dict, list, tuple)):
        return apply_overrides(request, Response(body=dump_json(value), content_type=JSON))
    return None


def resolve_convertible(request: Request, value: Any) -> Any:
    """Objects exposing ``to_json()`` (or dataclasses) become structured data."""
    if _has_conversion(value):
        return _convert(value)
    return None


async def resolve_file(request: Request, value: Any) -> Any:
    if isinstance(value, os.PathLike):
        return apply_overrides(request, await file_response(value))
    return None


async def resolve_nested(request: Request, value: Any) -> Any:
    """Call a handler-like value with the current request.

    A nested handler returning ``None`` declines the whole request.
    """
    if isinstance(value, type) or not callable(value):
        return None
    result = await invoke(value, request)
    if result is None:
        raise NotFound(f"Nested handler {value!r} declined the request")
    return result


BUILTIN_RESOLVERS = (
    resolve_response,
    resolve_bytes,
    resolve_stream,
    resolve_text,
    resolve_json,
    resolve_convertible,
    resolve_file,
    resolve_nested,
)
