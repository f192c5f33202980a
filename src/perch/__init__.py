"""Perch: return anything from a handler, get an HTTP response back.

A handler's return value (text, bytes, JSON-able data, a stream, a
file path, another handler, or a finished response) is resolved into a
response by a chain of resolvers that apps can extend.

Basic usage::

    from perch import App, serve

    def init():
        app = App()

        @app.get("/clients/{id}")
        def client(request, id: str):
            return {"id": id}

        return app

    serve(init)
"""

__version__ = "0.1.0"
__all__ = [
    "ANY_METHOD",
    "AnyResponse",
    "App",
    "Cascade",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "PerchError",
    "RegistrationError",
    "Request",
    "ResolverRegistry",
    "Response",
    "ServeConfig",
    "ServeContext",
    "StreamingResponse",
    "UnresolvableValueError",
    "apply_to",
    "content_type",
    "download",
    "header",
    "merge",
    "run",
    "serve",
]

_EXPORTS = {
    "ANY_METHOD": "perch.routing.route",
    "AnyResponse": "perch.http.response",
    "App": "perch.app",
    "Cascade": "perch.cascade",
    "ConfigurationError": "perch.errors",
    "HTTPError": "perch.errors",
    "MethodNotAllowed": "perch.errors",
    "NotFound": "perch.errors",
    "PerchError": "perch.errors",
    "RegistrationError": "perch.errors",
    "Request": "perch.http.request",
    "ResolverRegistry": "perch.resolution.registry",
    "Response": "perch.http.response",
    "ServeConfig": "perch.config",
    "ServeContext": "perch.server.run",
    "StreamingResponse": "perch.http.response",
    "UnresolvableValueError": "perch.errors",
    "apply_to": "perch.resolution.combinators",
    "content_type": "perch.resolution.transforms",
    "download": "perch.resolution.transforms",
    "header": "perch.resolution.transforms",
    "merge": "perch.resolution.combinators",
    "run": "perch.server.run",
    "serve": "perch.server.run",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    module_name = _EXPORTS.get(name)
    if module_name is None:
        msg = f"module 'perch' has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
