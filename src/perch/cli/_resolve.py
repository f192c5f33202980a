"""Import resolution: turns ``"module:attribute"`` strings into handler factories."""

import importlib
from collections.abc import Callable
from typing import Any

from perch.app import App
from perch.cascade import Cascade


def resolve_init(import_string: str) -> Callable[[], Any]:
    """Resolve an import string to a zero-argument handler factory.

    When the attribute portion is omitted it defaults to ``app``. An
    ``App`` or ``Cascade`` found there is wrapped in a factory returning
    it; any other callable is taken to be the factory itself.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the attribute is not callable.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if isinstance(obj, (App, Cascade)):
        return lambda: obj

    if not callable(obj):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not an app or factory"
        raise TypeError(msg)
    return obj
