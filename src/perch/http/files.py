"""Static file transfer.

Turns a file reference into a streaming response. The file is opened
only when the transport starts pulling chunks, and closed by the
``async with`` block on completion, error or cancellation.
"""

import os
from collections.abc import AsyncIterator

import anyio

from perch.errors import NotFound
from perch.http.mime import guess_content_type
from perch.http.response import BINARY, StreamingResponse

CHUNK_SIZE = 64 * 1024


async def _read_chunks(path: anyio.Path, chunk_size: int) -> AsyncIterator[bytes]:
    async with await anyio.open_file(path, "rb") as handle:
        while chunk := await handle.read(chunk_size):
            yield chunk


async def file_response(
    path: str | os.PathLike[str],
    *,
    content_type: str | None = None,
    chunk_size: int = CHUNK_SIZE,
) -> StreamingResponse:
    """Build a response streaming the bytes of *path*.

    Raises ``NotFound`` if *path* is not a regular file. The content type
    is guessed from the file name unless given.
    """
    file_path = anyio.Path(path)
    if not await file_path.is_file():
        raise NotFound(f"No such file: {os.fspath(path)}")

    size = (await file_path.stat()).st_size
    return StreamingResponse(
        chunks=_read_chunks(file_path, chunk_size),
        content_type=content_type or guess_content_type(file_path.name, BINARY) or BINARY,
        headers=(("Content-Length", str(size)),),
    )
