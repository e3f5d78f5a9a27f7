"""Deduplicating set container used by matcher evaluation."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T", bound=Hashable)


class PathSet(Generic[T]):
    """Set of comparable values; iteration order is unspecified."""

    __slots__ = ("_items",)

    def __init__(self, values: Iterable[T] = ()) -> None:
        self._items: set[T] = set(values)

    def add(self, *values: T) -> None:
        self._items.update(values)

    def remove(self, *values: T) -> None:
        for value in values:
            self._items.discard(value)

    def contains(self, value: T) -> bool:
        return value in self._items

    def values(self) -> list[T]:
        """Return a list copy of the members."""
        return list(self._items)

    def union(self, other: PathSet[T]) -> PathSet[T]:
        return PathSet(self._items | other._items)

    def intersection(self, other: PathSet[T]) -> PathSet[T]:
        return PathSet(self._items & other._items)

    def difference(self, other: PathSet[T]) -> PathSet[T]:
        return PathSet(self._items - other._items)

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"PathSet({sorted(map(repr, self._items))})"
