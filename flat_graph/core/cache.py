"""Compute-once cache.

Values are computed at most once per key and kept for the lifetime of the
cache. Reads of an already computed key never take a lock. A miss takes a
lock private to that key, so unrelated keys never wait on one another.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ComputeOnceCache(Generic[K, V]):
    """Thread-safe get-or-compute store keyed per entry.

    If the factory raises, nothing is stored and the exception propagates;
    the next caller for that key computes again.
    """

    def __init__(self) -> None:
        self._values: dict[K, V] = {}
        self._locks: dict[K, threading.Lock] = {}

    def get_or_compute(self, key: K, factory: Callable[[K], V]) -> V:
        """Return the cached value for key, computing it on first use."""
        try:
            return self._values[key]
        except KeyError:
            pass

        # dict.setdefault is atomic, so every racing caller gets the same lock
        lock = self._locks.setdefault(key, threading.Lock())
        try:
            with lock:
                try:
                    return self._values[key]
                except KeyError:
                    pass
                # setdefault keeps the first stored value if a retry after a
                # failed factory raced with another caller
                return self._values.setdefault(key, factory(key))
        finally:
            if self._locks.get(key) is lock:
                self._locks.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        """Number of computed entries."""
        return len(self._values)

    def clear(self) -> None:
        """Drop every computed entry."""
        self._values.clear()
        self._locks.clear()
