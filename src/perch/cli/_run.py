"""``perch run``: resolve the target and start the server.

Configuration comes from the environment (``PERCH_PORT`` and friends);
command-line flags override it.
"""

import argparse
import dataclasses
import sys

from perch.cli._resolve import resolve_init
from perch.config import ServeConfig


def build_config(args: argparse.Namespace) -> ServeConfig:
    """Environment configuration with the CLI flags applied on top."""
    config = ServeConfig.from_env()
    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.no_reload:
        overrides["hot_reload"] = False
    if args.debug:
        overrides["debug"] = True
    return dataclasses.replace(config, **overrides)


def run_server(args: argparse.Namespace) -> None:
    try:
        init = resolve_init(args.target)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from perch.server.run import run

    run(init, build_config(args))
