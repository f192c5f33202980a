"""Process bootstrap: build the handler and serve it with pounce.

``serve()`` starts the server in a background thread and returns a
``ServeContext`` that stops it; ``run()`` blocks until the server exits::

    def init():
        app = App()
        app.get("/", lambda: "hello")
        return app

    ctx = serve(init, ServeConfig.from_env())
    ...
    ctx.close()
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

import anyio

from perch._internal.invoke import invoke
from perch._internal.types import RequestHandler
from perch.config import ServeConfig
from perch.server.handler import ASGIApp

logger = logging.getLogger("perch.server")

Init = Callable[[], Any]


def _create_server(handler: RequestHandler, config: ServeConfig) -> Any:
    """Build a single-worker pounce server for *handler*."""
    from pounce.config import ServerConfig
    from pounce.server import Server

    server_config = ServerConfig(
        host=config.host,
        port=config.port,
        workers=1,
        reload=config.hot_reload,
    )
    return Server(server_config, ASGIApp(handler, debug=config.debug))


def _load(init: Init) -> RequestHandler:
    """Call the (sync or async) factory from synchronous code."""
    handler = anyio.run(invoke, init)
    if not callable(handler):
        msg = f"{init!r} returned {handler!r}, which is not a request handler"
        raise TypeError(msg)
    return handler


class ServeContext:
    """A running server. ``close()`` stops it and releases the socket."""

    __slots__ = ("_closed", "_lock", "_thread", "config", "handler", "server")

    def __init__(self, server: Any, thread: threading.Thread, handler: RequestHandler, config: ServeConfig) -> None:
        self.server = server
        self.handler = handler
        self.config = config
        self._thread = thread
        self._lock = threading.Lock()
        self._closed = False

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self, timeout: float | None = 10.0) -> None:
        """Stop the server and wait for its thread. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.info("perch HTTP service on port %d shutting down", self.config.port)
        self.server.shutdown()
        self._thread.join(timeout)

    def __enter__(self) -> "ServeContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def serve(init: Init, config: ServeConfig | None = None) -> ServeContext:
    """Build the handler from *init* and serve it in a background thread."""
    config = config or ServeConfig.from_env()
    handler = _load(init)
    server = _create_server(handler, config)

    thread = threading.Thread(target=server.run, name=f"perch-server-{config.port}", daemon=True)
    thread.start()
    logger.info("perch HTTP service running on port %d", config.port)
    return ServeContext(server, thread, handler, config)


def run(init: Init, config: ServeConfig | None = None) -> None:
    """Build the handler from *init* and serve it until interrupted."""
    config = config or ServeConfig.from_env()
    handler = _load(init)
    server = _create_server(handler, config)
    logger.info("perch HTTP service running on port %d", config.port)
    server.run()
