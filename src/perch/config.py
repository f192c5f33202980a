"""Server configuration.

ServeConfig is a frozen dataclass: immutable after creation, built either
directly or from the process environment::

    config = ServeConfig(port=3000, hot_reload=False)
    config = ServeConfig.from_env()          # PERCH_PORT, PERCH_ADDRESS, ...
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger("perch.server")

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080


def _lookup(environ: Mapping[str, str], name: str) -> str | None:
    """Upper-case name first, then lower-case."""
    value = environ.get(name.upper())
    if value is None:
        value = environ.get(name.lower())
    return value


@dataclass(frozen=True, slots=True)
class ServeConfig:
    """How ``serve()`` binds and runs. Immutable after creation."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    hot_reload: bool = True
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, prefix: str = "PERCH") -> "ServeConfig":
        """Read ``<PREFIX>_PORT``, ``_ADDRESS``, ``_HOTRELOAD`` and ``_DEBUG``.

        Missing variables keep their defaults. Hot reload stays on unless
        the variable is ``false`` in any case; debug is on only for
        ``true``/``1``/``yes``. A port that is not a number falls back to
        the default with a warning.
        """
        env = os.environ if environ is None else environ

        port = DEFAULT_PORT
        raw_port = _lookup(env, f"{prefix}_PORT")
        if raw_port is not None:
            try:
                port = int(raw_port)
            except ValueError:
                logger.warning(
                    "Ignoring %s_PORT=%r: not a port number, using %d", prefix, raw_port, DEFAULT_PORT
                )

        host = _lookup(env, f"{prefix}_ADDRESS") or DEFAULT_HOST

        raw_reload = _lookup(env, f"{prefix}_HOTRELOAD")
        hot_reload = raw_reload is None or raw_reload.strip().lower() != "false"

        raw_debug = _lookup(env, f"{prefix}_DEBUG")
        debug = raw_debug is not None and raw_debug.strip().lower() in {"true", "1", "yes"}

        return cls(host=host, port=port, hot_reload=hot_reload, debug=debug)
