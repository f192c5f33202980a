"""Read-only query string parameters."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Parsed query string.

    Indexing returns the first value for a key; ``get_list`` returns all
    of them. The undecoded string stays available as ``raw``.
    """

    __slots__ = ("_data", "raw")

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        self.raw: str = query_string
        self._data: dict[str, list[str]] = parse_qs(query_string, keep_blank_values=True)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({self.raw!r})"

    def get_list(self, key: str) -> list[str]:
        """All values for *key*."""
        return list(self._data.get(key, ()))
