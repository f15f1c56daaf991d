"""
Bounded Buffer

Fixed-capacity FIFO used by every in-memory collection in this package.

DESIGN RULES:
- Capacity fixed at construction
- Oldest entry evicted first
- Memory capped by construction, never by flow control
"""

from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BoundedBuffer(Generic[T]):
    """
    Ring-buffer semantics over a deque.

    Append is O(1); once full, every append evicts the oldest entry.
    Iteration order is insertion order (oldest first).
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: T) -> Optional[T]:
        """
        Append an item.

        Returns:
            The evicted item, or None if nothing was evicted.
        """
        evicted = self._items[0] if len(self._items) == self._capacity else None
        self._items.append(item)
        return evicted

    def snapshot(self) -> List[T]:
        """Copy of the contents, oldest first."""
        return list(self._items)

    def tail(self, n: int) -> List[T]:
        """Last n items, oldest first."""
        if n <= 0:
            return []
        if n >= len(self._items):
            return list(self._items)
        return list(self._items)[-n:]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)
