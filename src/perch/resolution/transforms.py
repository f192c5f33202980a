"""Stock transformations.

Each works on both kinds of value: a final response is changed
directly; anything else gets a response override recorded on the
request, which the built-in resolvers apply once they build the
response. Use them as route or global middleware, or inline through
``apply_to``::

    app.get("/report", report, middleware=[download("report.csv")])
    return apply_to(content_type("html"), "<h1>Hi</h1>")
"""

from typing import Any

from perch._internal.types import Transformation
from perch.errors import ConfigurationError
from perch.http.mime import guess_content_type
from perch.http.request import Request
from perch.http.response import is_final
from perch.resolution.overrides import overrides_for, record_overrides


def content_type(kind: str) -> Transformation:
    """Force the content type: a mime type, extension or shorthand (``"json"``)."""
    resolved = guess_content_type(kind, default=None)
    if resolved is None:
        msg = f"Unknown content type {kind!r}."
        raise ConfigurationError(msg)

    def set_content_type(request: Request, value: Any) -> Any:
        if is_final(value):
            if value.content_type == resolved:
                return None
            return value.with_content_type(resolved)
        record_overrides(request, overrides_for(request).with_content_type(resolved))
        return None

    set_content_type.__qualname__ = f"content_type({kind!r})"
    return set_content_type


def header(name: str, value: str) -> Transformation:
    """Add a response header."""

    def set_header(request: Request, current: Any) -> Any:
        if is_final(current):
            if current.header(name) == value:
                return None
            return current.with_header(name, value)
        record_overrides(request, overrides_for(request).with_header(name, value))
        return None

    set_header.__qualname__ = f"header({name!r})"
    return set_header


def download(filename: str | None = None) -> Transformation:
    """Mark the response as an attachment, optionally naming the file."""
    disposition = "attachment"
    if filename is not None:
        escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
        disposition = f'attachment; filename="{escaped}"'
    transformation = header("Content-Disposition", disposition)
    transformation.__qualname__ = f"download({filename!r})"
    return transformation
