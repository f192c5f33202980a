"""The perch application: routes, resolvers and middleware in one facade.

Mutable during setup. Every registration binds the handler's signature
right away, so an unbound parameter fails the import that declares the
route. The first request (or an explicit ``freeze()``) compiles the
route trie and one resolution pipeline per route; after that the app is
read-only and safe to share between concurrent requests.

An ``App`` is itself a request handler (``await app(request)``), so it
can be mounted in another app, returned from a handler, or combined
with others in a ``Cascade``.
"""

import threading
from collections.abc import Callable, Iterable
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.types import Handler, RequestHandler, Transformation
from perch.errors import ConfigurationError
from perch.http.request import Request
from perch.http.response import AnyResponse
from perch.resolution.pipeline import ResolutionPipeline
from perch.resolution.registry import ResolverRegistry
from perch.routing.route import ANY_METHOD, Route
from perch.routing.router import Router
from perch.routing.signature import describe_handler

_MOUNT_CAPTURE = "mount_path"


def _normalize_prefix(prefix: str) -> str:
    stripped = prefix.strip("/")
    return f"/{stripped}" if stripped else ""


class App:
    """Router facade.

    Usage::

        app = App()

        @app.get("/clients/{id}")
        def client(request: Request, id: str):
            return {"id": id}

        app.use(header("X-Powered-By", "perch"))

    Chain order for a route: global middleware (``use``) in registration
    order, then the route's own middleware, then the resolver registry.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_global_middleware",
        "_pipelines",
        "_registry",
        "_router",
    )

    def __init__(self, *, registry: ResolverRegistry | None = None) -> None:
        self._registry: ResolverRegistry = registry if registry is not None else ResolverRegistry()
        self._global_middleware: list[Transformation] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Routes go into the trie as they are registered; _freeze() compiles it
        self._router: Router = Router()
        self._pipelines: dict[int, ResolutionPipeline] = {}

    # -- Route registration --

    def add(
        self,
        method: str | Iterable[str],
        path: str,
        handler: Handler,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Handler:
        """Register *handler* for *method* (or several) on *path*.

        Raises ``RegistrationError`` if the handler's parameters cannot be
        bound to the request and the template's captures.
        """
        self._check_not_frozen()
        methods = [method] if isinstance(method, str) else list(method)
        if not methods:
            msg = f"Route {path!r} needs at least one HTTP method."
            raise ConfigurationError(msg)
        route = Route(
            path=path,
            methods=frozenset(m.upper() for m in methods),
            descriptor=describe_handler(handler, path),
            middleware=tuple(middleware),
        )
        self._router.add(route)
        return handler

    def route(
        self,
        path: str,
        methods: Iterable[str] | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a handler via decorator. Methods default to ``GET``."""
        verbs = list(methods or ["GET"])
        route_middleware = tuple(middleware)

        def decorator(func: Handler) -> Handler:
            return self.add(verbs, path, func, middleware=route_middleware)

        return decorator

    def _verb(
        self,
        method: str,
        path: str,
        handler: Handler | None,
        middleware: Iterable[Transformation],
    ) -> Any:
        if handler is not None:
            return self.add(method, path, handler, middleware=middleware)
        return self.route(path, [method], middleware=middleware)

    def get(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a GET route directly, or as a decorator when *handler* is omitted."""
        return self._verb("GET", path, handler, middleware)

    def post(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a POST route."""
        return self._verb("POST", path, handler, middleware)

    def put(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a PUT route."""
        return self._verb("PUT", path, handler, middleware)

    def patch(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a PATCH route."""
        return self._verb("PATCH", path, handler, middleware)

    def delete(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a DELETE route."""
        return self._verb("DELETE", path, handler, middleware)

    def head(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register a HEAD route."""
        return self._verb("HEAD", path, handler, middleware)

    def options(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        middleware: Iterable[Transformation] = (),
    ) -> Any:
        """Register an OPTIONS route."""
        return self._verb("OPTIONS", path, handler, middleware)

    def mount(self, prefix: str, handler: RequestHandler) -> None:
        """Forward every request under *prefix* to another request handler.

        The forwarded request's ``path`` has the prefix removed and its
        ``root_path`` extended by it::

            api = App()
            api.get("/users/{id}", show_user)
            app.mount("/api", api)      # GET /api/users/7 -> api sees /users/7
        """
        self._check_not_frozen()
        base = _normalize_prefix(prefix)
        target = handler

        async def forward(request: Request) -> Any:
            rest = request.path_params.get(_MOUNT_CAPTURE, "")
            sub_request = request.with_path(f"/{rest}", root_path=request.root_path + base)
            return await invoke(target, sub_request)

        forward.__qualname__ = f"mount({base or '/'!r})"
        self.add(ANY_METHOD, base or "/", forward)
        self.add(ANY_METHOD, f"{base}/{{{_MOUNT_CAPTURE}:path}}", forward)

    # -- Resolvers and middleware --

    def use(self, transformation: Transformation) -> Transformation:
        """Add global middleware, applied to every route before its own middleware."""
        self._check_not_frozen()
        self._global_middleware.append(transformation)
        return transformation

    def resolver(self, func: Transformation | None = None, *, before: Any = None) -> Any:
        """Register a custom resolver in this app's registry.

        Usable plain or as a decorator; *before* inserts it ahead of an
        existing resolver (e.g. a built-in it should shadow)::

            @app.resolver(before=resolve_json)
            def money(request, value):
                if isinstance(value, Money):
                    return Response(str(value))
                return None
        """
        self._check_not_frozen()
        if func is not None:
            return self._registry.register(func, before=before)

        def decorator(resolver: Transformation) -> Transformation:
            return self._registry.register(resolver, before=before)

        return decorator

    @property
    def registry(self) -> ResolverRegistry:
        return self._registry

    @property
    def routes(self) -> list[Route]:
        """Registered routes in registration order."""
        return self._router.routes

    # -- Request handling --

    async def __call__(self, request: Request) -> AnyResponse:
        """Handle *request*.

        Raises ``NotFound`` / ``MethodNotAllowed`` when no route claims it,
        which is how an app declines inside a cascade.
        """
        self._ensure_frozen()

        match = self._router.match(request.method, request.path)
        request = request.with_path_params(match.path_params)
        value = await match.route.descriptor.invoke(request)
        return await self._pipelines[id(match.route)].resolve(request, value)

    def pipeline_for(self, route: Route) -> ResolutionPipeline:
        """The compiled resolver chain of *route*."""
        self._ensure_frozen()
        return self._pipelines[id(route)]

    # -- Internal --

    def freeze(self) -> None:
        """Compile the app now instead of on the first request."""
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        """Freeze exactly once, even if concurrent first requests race."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile routes and per-route pipelines. Caller holds the lock."""
        registry_chain = self._registry.freeze()
        global_middleware = tuple(self._global_middleware)

        pipelines: dict[int, ResolutionPipeline] = {}
        for route in self._router.routes:
            pipelines[id(route)] = ResolutionPipeline(
                (*global_middleware, *route.middleware, *registry_chain)
            )
        self._router.compile()
        self._pipelines = pipelines
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, resolvers and middleware first."
            )
            raise RuntimeError(msg)
