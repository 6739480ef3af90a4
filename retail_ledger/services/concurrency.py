"""
In-process serialization and deadlines for ledger operations.

Each account (and a few shared resources) gets one lock. An
operation takes every lock it needs up front, in one global
order, and keeps them until its unit of work has committed, so
two transfers between the same pair of accounts in opposite
directions cannot deadlock and no read-modify-write on a
balance can interleave with another.
"""

import threading
import time
from contextlib import contextmanager
from typing import Callable, Hashable, Iterable, Iterator

from retail_ledger.errors import DeadlineExceededError


def account_key(account_id: int) -> tuple[str, int]:
    return ("account", account_id)


def owner_key(customer_id: int) -> tuple[str, int]:
    return ("owner", customer_id)


# Guards account-number allocation across owners
NUMBER_ALLOCATION_KEY = ("numbers", 0)


class Deadline:
    """A point in monotonic time an operation must finish by."""

    def __init__(
        self,
        seconds: float | None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.clock = clock
        self.expires_at = None if seconds is None else clock() + seconds

    def remaining(self) -> float | None:
        """Seconds left, or None when there is no deadline."""
        if self.expires_at is None:
            return None
        return max(self.expires_at - self.clock(), 0.0)

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and self.clock() >= self.expires_at

    def check(self, step: str) -> None:
        if self.expired:
            raise DeadlineExceededError(f"Deadline exceeded before {step}")


class LockRegistry:
    """One lock per key, created on first use and kept for the process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(
        self, keys: Iterable[Hashable], deadline: Deadline | None = None
    ) -> Iterator[None]:
        """
        Acquire every key's lock in sorted order, release in reverse.

        Waiting is bounded by the deadline; when it runs out the
        locks taken so far are released and DeadlineExceededError
        is raised.
        """
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                if deadline is None or deadline.remaining() is None:
                    lock.acquire()
                else:
                    deadline.check(f"acquiring lock {key}")
                    if not lock.acquire(timeout=deadline.remaining()):
                        raise DeadlineExceededError(
                            f"Timed out waiting for lock {key}"
                        )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
