"""Insertion-ordered set used for recipient and token batches."""

from typing import Generic, Hashable, Iterable, Iterator, TypeVar

T = TypeVar("T", bound=Hashable)


class OrderedSet(Generic[T]):
    """
    Set with deterministic iteration in first-insertion order.

    Re-adding an existing member keeps its original position; removing and
    re-adding moves it to the end.
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: dict[T, None] = {}
        for item in items:
            self.add(item)

    def add(self, item: T) -> bool:
        """Add item; return True if it was not already present."""
        if item in self._items:
            return False
        self._items[item] = None
        return True

    def discard(self, item: T) -> bool:
        """Remove item if present; return True if it was removed."""
        if item in self._items:
            del self._items[item]
            return True
        return False

    def difference_update(self, items: Iterable[T]) -> list[T]:
        """Remove every given item; return the ones actually removed."""
        return [item for item in items if self.discard(item)]

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedSet):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedSet({list(self._items)!r})"

    def to_list(self) -> list[T]:
        """Members as a list, in order."""
        return list(self._items)
