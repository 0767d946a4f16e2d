from __future__ import annotations

from typing import Callable, Generic, Iterator, TypeVar, overload

T = TypeVar("T")


class AppendOnlyLog(Generic[T]):
    """
    Immutable sequence whose only mutator is `append`, which returns a new log.

    Used for FunctionInstance history/evidence and Action status history.
    """

    __slots__ = ("_items",)

    def __init__(self, items: tuple[T, ...] | list[T] = ()):
        self._items: tuple[T, ...] = tuple(items)

    def append(self, item: T) -> "AppendOnlyLog[T]":
        return AppendOnlyLog(self._items + (item,))

    def latest(self) -> T | None:
        return self._items[-1] if self._items else None

    def to_list(self, serialize: Callable[[T], object] | None = None) -> list:
        if serialize is None:
            return list(self._items)
        return [serialize(i) for i in self._items]

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[T, ...]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AppendOnlyLog):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"AppendOnlyLog({list(self._items)!r})"
