"""Fixed-capacity priority containers."""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


class LimitedPriorityQueue(Generic[T]):
    """A sorted container holding at most ``capacity`` elements.

    Elements are kept ordered from the highest priority (``top``) to the
    lowest (``bottom``). By default a smaller key has a higher priority;
    with ``reverse=True`` a larger key has. When the queue is full, pushing
    an element that would land past the bottom is refused, otherwise the
    current bottom element is dropped to make room. Elements with equal
    keys keep their insertion order.
    """

    def __init__(
        self,
        capacity: int = 0,
        iterable: Iterable[T] = (),
        key: Optional[Callable[[T], Any]] = None,
        reverse: bool = False,
    ) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        self._items: list[T] = []
        self._key = key
        self._reverse = reverse
        for value in iterable:
            self.push(value)

    def _precedes(self, a: T, b: T) -> bool:
        if self._key is not None:
            ka, kb = self._key(a), self._key(b)
        else:
            ka, kb = a, b
        return kb < ka if self._reverse else ka < kb

    def _upper_bound(self, value: T) -> int:
        lo, hi = 0, len(self._items)
        while lo < hi:
            mid = (lo + hi) // 2
            if self._precedes(value, self._items[mid]):
                hi = mid
            else:
                lo = mid + 1
        return lo

    def push(self, value: T) -> bool:
        """Insert ``value``; return whether it was kept."""
        pos = self._upper_bound(value)
        if self.is_full():
            if pos == len(self._items):
                return False
            self._items.pop()
        self._items.insert(pos, value)
        return True

    def pop(self) -> T:
        """Remove and return the lowest-priority element."""
        if not self._items:
            raise IndexError("pop from an empty queue")
        return self._items.pop()

    def top(self) -> T:
        """Return the highest-priority element."""
        if not self._items:
            raise IndexError("top of an empty queue")
        return self._items[0]

    def bottom(self) -> T:
        """Return the lowest-priority element."""
        if not self._items:
            raise IndexError("bottom of an empty queue")
        return self._items[-1]

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) == self._capacity

    def capacity(self) -> int:
        return self._capacity

    def reserve(self, capacity: int) -> None:
        """Change the capacity, dropping the lowest-priority overflow."""
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        del self._items[capacity:]
        self._capacity = capacity

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self._capacity}, "
            f"items={self._items!r}, reverse={self._reverse})"
        )