"""Per-key locking for operations that must not overlap on the same key."""

import threading
from contextlib import contextmanager
from typing import Any, Hashable, Iterator


class KeyedLock:
    """
    One lock per key, created on first use.

    Holders of different keys never block each other.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable, timeout: float = -1) -> Iterator[None]:
        """
        Hold the lock for key.

        Raises:
            TimeoutError: If timeout >= 0 and the lock was not acquired in time.
        """
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            raise TimeoutError(f"Timed out waiting for lock on {key!r}")
        try:
            yield
        finally:
            lock.release()

    def locked(self, key: Any) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()
