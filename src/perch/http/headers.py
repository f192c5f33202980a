"""Case-insensitive, read-only request headers.

Wraps the raw ``(name, value)`` byte pairs of an ASGI scope and decodes
lazily. Names compare case-insensitively; repeated headers keep every
value.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only header mapping.

    ``headers["Content-Type"]`` returns the first value, ``get_list``
    returns all of them.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        self._raw: tuple[tuple[bytes, bytes], ...] = tuple(
            (name.lower(), value) for name, value in raw
        )

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> Headers:
        """Build headers from a plain ``str -> str`` mapping (tests, sub-requests)."""
        return cls(
            (name.encode("latin-1"), value.encode("latin-1")) for name, value in headers.items()
        )

    def _values(self, key: str) -> Iterator[str]:
        wanted = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name == wanted:
                yield value.decode("latin-1")

    def __getitem__(self, key: str) -> str:
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return next(self._values(key), None) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name.decode("latin-1") for name, _ in self._raw))

    def __len__(self) -> int:
        return len({name for name, _ in self._raw})

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        """All values sent for *key*, in order."""
        return list(self._values(key))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Lower-cased raw byte pairs."""
        return self._raw
