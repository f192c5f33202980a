"""Error handling at the transport boundary.

Maps ``HTTPError`` exceptions and unexpected failures to plain-text
responses. Nothing inside the app converts exceptions; this is the only
place they become status codes.
"""

import logging
import traceback

from perch.errors import HTTPError, UnresolvableValueError
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")


def handle_http_error(exc: HTTPError, request: Request, *, debug: bool = False) -> Response:
    """Map an HTTPError to a response with the same status and headers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    return Response(body=detail, status=exc.status).with_headers(exc.headers)


def handle_internal_error(exc: Exception, request: Request, *, debug: bool = False) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    if isinstance(exc, UnresolvableValueError):
        logger.error(
            "500 %s %s: handler produced an unresolvable %s",
            request.method,
            request.path,
            exc.type_tag,
            exc_info=exc,
        )
    else:
        logger.exception("500 %s %s", request.method, request.path, exc_info=exc)

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500)
    return Response(body="Internal Server Error", status=500)
