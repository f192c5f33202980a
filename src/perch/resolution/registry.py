"""Ordered resolver registry.

Each ``App`` owns one registry. It starts with the built-in resolvers
and accepts custom ones at the end or directly before an existing entry.
Position is the only identity an entry has: when two resolvers could
claim the same value, the earlier one wins.
"""

from collections.abc import Iterator
from typing import Any

from perch._internal.types import Transformation
from perch.resolution.builtin import BUILTIN_RESOLVERS


class ResolverRegistry:
    """Mutable during setup, frozen into a tuple before serving.

    Usage::

        registry = ResolverRegistry()
        registry.register(resolve_money, before=resolve_json)
        chain = registry.freeze()
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(self, *, builtins: bool = True) -> None:
        self._entries: list[Transformation] = list(BUILTIN_RESOLVERS) if builtins else []
        self._frozen: tuple[Transformation, ...] | None = None

    def register(self, resolver: Transformation, *, before: Any = None) -> Transformation:
        """Add *resolver*; returns it so this works as a decorator.

        With *before*, the resolver is inserted directly ahead of that
        entry (typically a built-in it should shadow). Otherwise it is
        appended.
        """
        if self._frozen is not None:
            msg = "Cannot register resolvers after the registry is frozen."
            raise RuntimeError(msg)
        if not callable(resolver):
            msg = f"Resolver {resolver!r} is not callable."
            raise TypeError(msg)
        if before is None:
            self._entries.append(resolver)
            return resolver
        try:
            index = self._entries.index(before)
        except ValueError:
            msg = f"{before!r} is not registered; cannot insert before it."
            raise ValueError(msg) from None
        self._entries.insert(index, resolver)
        return resolver

    def freeze(self) -> tuple[Transformation, ...]:
        """Return the final ordered chain. Further registration raises."""
        if self._frozen is None:
            self._frozen = tuple(self._entries)
        return self._frozen

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def __iter__(self) -> Iterator[Transformation]:
        return iter(self._frozen if self._frozen is not None else tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, resolver: object) -> bool:
        return resolver in self._entries

    def __repr__(self) -> str:
        names = ", ".join(getattr(r, "__name__", repr(r)) for r in self)
        return f"ResolverRegistry([{names}])"
