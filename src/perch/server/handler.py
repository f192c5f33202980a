"""ASGI handler: translates ASGI scope/messages to perch types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, calls the request handler, resolves whatever
it returns and sends the response back through ASGI send().
"""

import logging
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch._internal.types import RequestHandler
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import AnyResponse, StreamingResponse, is_final
from perch.resolution.builtin import BUILTIN_RESOLVERS
from perch.resolution.pipeline import ResolutionPipeline
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.sender import send_response, send_streaming_response

logger = logging.getLogger("perch.server")

# Resolves values returned by a bare handler (one that is not an App)
_FALLBACK = ResolutionPipeline(BUILTIN_RESOLVERS)


async def handle_request(request: Request, handler: RequestHandler, *, debug: bool = False) -> AnyResponse:
    """Run *handler* for *request* and always come back with a response."""
    try:
        value: Any = await invoke(handler, request)
        if not is_final(value):
            value = await _FALLBACK.resolve(request, value)
        return value
    except HTTPError as exc:
        return handle_http_error(exc, request, debug=debug)
    except Exception as exc:
        return handle_internal_error(exc, request, debug=debug)


class ASGIApp:
    """ASGI 3 callable serving one request handler.

    ``handler`` is an ``App``, a ``Cascade`` or any
    ``async (request) -> value`` callable.
    """

    __slots__ = ("debug", "handler")

    def __init__(self, handler: RequestHandler, *, debug: bool = False) -> None:
        self.handler = handler
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        response = await handle_request(request, self.handler, debug=self.debug)
        head = request.method == "HEAD"

        if isinstance(response, StreamingResponse):
            await send_streaming_response(response, send, head=head)
        else:
            await send_response(response, send, head=head)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.debug("lifespan startup")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                logger.debug("lifespan shutdown")
                await send({"type": "lifespan.shutdown.complete"})
                return
