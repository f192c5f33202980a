"""Path capture converters.

Templates may type a capture (``{id:int}``); handlers may type the
parameter bound to it (``id: int``). Both sides share this table.
"""

from collections.abc import Callable
from typing import Any

# template type -> (segment regex, converter)
CONVERTERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "str": (r"[^/]+", str),
    "int": (r"-?\d+", int),
    "float": (r"-?\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}

# handler annotation -> converter
ANNOTATION_CONVERTERS: dict[Any, Callable[[str], Any]] = {
    str: str,
    int: int,
    float: float,
}

