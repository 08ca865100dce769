"""
Bounded in-memory aggregate stores.

- SlidingWindow: fixed-capacity FIFO series (append drops the oldest).
- RecentItems: capped newest-first list (batches are prepended, oldest evicted).
- ranked_top_n: stable descending top-N selection.

Stores are mutated only by their owning subsystem job; readers receive
tuple copies via snapshot().
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")


class SlidingWindow(Generic[T]):
    """Append-only series with eviction. len() never exceeds capacity; order = append order."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def append(self, item: T) -> None:
        self._items.append(item)

    def snapshot(self) -> tuple[T, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

class RecentItems(Generic[T]):
    """
    Newest-first capped list. prepend(batch) puts the batch in front, keeping
    the batch's own order; items beyond capacity fall off the old end.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def prepend(self, batch: Iterable[T]) -> int:
        """Prepend a batch; returns number of items added (empty batch is a no-op)."""
        items = list(batch)
        for item in reversed(items):
            self._items.appendleft(item)
        return len(items)

    def snapshot(self) -> tuple[T, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)


def ranked_top_n(items: Iterable[T], key: Callable[[T], object], n: int) -> list[T]:
    """Top n items by key, descending. Ties keep input order (sorted() is stable with reverse=True)."""
    if n < 0:
        raise ValueError("n must be >= 0")
    return sorted(items, key=key, reverse=True)[:n]
