"""Bounded and unbounded thread-safe queues used between pipeline stages."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_CAPACITY = 65536


class RingBuffer(Generic[T]):
    """Bounded non-blocking FIFO.

    The capacity must be a power of two of at least 64; one slot is kept free,
    so the buffer holds at most ``capacity - 1`` items.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0 or capacity & (capacity - 1):
            raise ValueError("capacity must be a power of 2")
        if capacity < 64:
            raise ValueError("capacity must be at least 64")
        self.capacity = capacity
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    def try_push(self, item: T) -> bool:
        """Append ``item``; return False if the buffer is full."""
        with self._lock:
            if len(self._items) >= self.capacity - 1:
                return False
            self._items.append(item)
            return True

    def try_pop(self) -> Optional[T]:
        """Remove and return the oldest item, or None if the buffer is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ThreadSafeQueue(Generic[T]):
    """Unbounded FIFO with a blocking pop."""

    def __init__(self) -> None:
        self._items: Deque[T] = deque()
        self._ready = threading.Condition()

    def push(self, item: T) -> None:
        with self._ready:
            self._items.append(item)
            self._ready.notify()

    def try_pop(self) -> Optional[T]:
        """Remove and return the oldest item, or None if the queue is empty."""
        with self._ready:
            if not self._items:
                return None
            return self._items.popleft()

    def wait_and_pop(self) -> T:
        """Block until an item is available, then remove and return it."""
        with self._ready:
            self._ready.wait_for(lambda: bool(self._items))
            return self._items.popleft()

    def empty(self) -> bool:
        with self._ready:
            return not self._items

    def __len__(self) -> int:
        with self._ready:
            return len(self._items)

    def clear(self) -> None:
        with self._ready:
            self._items.clear()