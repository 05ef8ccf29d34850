"""Lazily computed, memoized-once values."""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Deferred(Generic[T]):
    """Runs `producer` on first access and caches the result.

    Safe to share between threads: the producer runs at most once.
    """

    def __init__(self, producer: Callable[[], T]):
        self._producer = producer
        self._value = _UNSET
        self._lock = threading.Lock()

    @property
    def evaluated(self) -> bool:
        return self._value is not _UNSET

    def get(self) -> T:
        if self._value is _UNSET:
            with self._lock:
                if self._value is _UNSET:
                    self._value = self._producer()
                    # release closures (sessions, solvers) once materialized
                    self._producer = None
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = repr(self._value) if self.evaluated else "<pending>"
        return f"Deferred({state})"
