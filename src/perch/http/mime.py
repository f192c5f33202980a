"""Content-type lookup by file name, extension or shorthand.

Backed by the stdlib ``mimetypes`` table, plus a few shorthands used by
the ``content_type()`` transformation::

    guess_content_type("json")        -> "application/json"
    guess_content_type(".css")        -> "text/css; charset=utf-8"
    guess_content_type("logo.png")    -> "image/png"
    guess_content_type("text/csv")    -> "text/csv"
"""

import mimetypes
import os
import re

from perch.http.response import BINARY, JSON, TEXT

_MIME_TYPE = re.compile(
    r"^(?:text|application|image|audio|video|font|multipart|message|model)/[\w.+-]+(?:\s*;.*)?$"
)

SHORTHANDS: dict[str, str] = {
    "text": TEXT,
    "txt": TEXT,
    "html": "text/html; charset=utf-8",
    "json": JSON,
    "binary": BINARY,
    "bytes": BINARY,
}


def _with_charset(content_type: str) -> str:
    if content_type.startswith("text/") and "charset" not in content_type:
        return f"{content_type}; charset=utf-8"
    return content_type


def guess_content_type(kind: str | os.PathLike[str], default: str | None = BINARY) -> str | None:
    """Map a file name, extension, shorthand or mime type to a content type.

    Returns *default* when nothing matches.
    """
    name = os.fspath(kind)
    if not isinstance(kind, os.PathLike) and _MIME_TYPE.match(name):
        return name

    shorthand = SHORTHANDS.get(name.lower().lstrip("."))
    if shorthand is not None:
        return shorthand

    basename = os.path.basename(name)
    if basename.startswith("."):
        candidate = f"file{basename}"
    elif "." in basename:
        candidate = basename
    else:
        candidate = f"file.{basename}"
    guessed, _ = mimetypes.guess_type(candidate)
    if guessed is None:
        return default
    return _with_charset(guessed)
