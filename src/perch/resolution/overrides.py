"""Response overrides carried on the request.

Transformations such as ``content_type("html")`` run before the value
they target has become a response. They record what they want here and
the built-in resolvers apply it to the response they build. Writes are
idempotent so a transformation may run on every pass of the pipeline.

Overrides are immutable; recording one replaces the context entry, so a
request copy with its own context dict never sees another copy's writes.
"""

from dataclasses import dataclass, replace

from perch.http.request import Request
from perch.http.response import AnyResponse

OVERRIDES_KEY = "perch.response_overrides"


@dataclass(frozen=True, slots=True)
class ResponseOverrides:
    """Content type and headers to stamp onto the eventual response."""

    content_type: str | None = None
    headers: tuple[tuple[str, str], ...] = ()

    def with_content_type(self, content_type: str) -> "ResponseOverrides":
        if self.content_type == content_type:
            return self
        return replace(self, content_type=content_type)

    def with_header(self, name: str, value: str) -> "ResponseOverrides":
        """Set *name*, replacing any earlier value case-insensitively."""
        if (name, value) in self.headers:
            return self
        lower = name.lower()
        kept = tuple((n, v) for n, v in self.headers if n.lower() != lower)
        return replace(self, headers=(*kept, (name, value)))


def overrides_for(request: Request) -> ResponseOverrides:
    """The overrides recorded for *request* so far."""
    return request.context.get(OVERRIDES_KEY) or ResponseOverrides()


def record_overrides(request: Request, overrides: ResponseOverrides) -> None:
    request.context[OVERRIDES_KEY] = overrides


def apply_overrides[R: AnyResponse](request: Request, response: R) -> R:
    """Return *response* with the recorded overrides applied."""
    overrides = request.context.get(OVERRIDES_KEY)
    if overrides is None:
        return response
    if overrides.content_type is not None:
        response = response.with_content_type(overrides.content_type)
    if overrides.headers:
        response = response.with_headers(list(overrides.headers))
    return response
