"""Advisory per-change locks.

Callers hold the lock for a whole enforcement call so two concurrent
submit/shelve triggers for the same change cannot both auto-create a review.
"""
from __future__ import annotations

import fcntl
import logging
import re
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from reviewflow.core.config.domains.locking import LockingConfig
from reviewflow.core.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class _KeyedLocks:
    """One ``threading.Lock`` per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str, timeout: Optional[float] = None) -> Iterator[bool]:
        """Acquire the lock for ``key``; yields False when ``timeout`` ran out first."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        acquired = False
        try:
            acquired = lock.acquire(timeout=timeout) if timeout is not None else lock.acquire()
            yield acquired
        finally:
            if acquired:
                lock.release()
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


class InProcessChangeLock:
    """Keyed ``threading.Lock`` per change id, for a single process."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._locks = _KeyedLocks()

    @contextmanager
    def acquire(self, change_id: str) -> Iterator[None]:
        with self._locks.hold(str(change_id), self.timeout) as acquired:
            if not acquired:
                raise LockTimeoutError(
                    f"Could not acquire lock on change {change_id} within {self.timeout}s",
                    context={"change": str(change_id)},
                )
            yield


_THREAD_MUTEXES = _KeyedLocks()


class FileChangeLock:
    """``fcntl.flock`` on a ``<change>.lock`` file, shared across processes.

    A process-wide mutex per lock file serializes threads first, since flock
    locks are per open file description.
    """

    def __init__(self, directory: Path, *, timeout: float = 30.0, poll_interval: float = 0.1) -> None:
        self.directory = Path(directory)
        self.timeout = float(timeout)
        self.poll_interval = float(poll_interval)

    @classmethod
    def from_config(cls, config: LockingConfig) -> "FileChangeLock":
        return cls(config.directory, timeout=config.timeout_seconds, poll_interval=config.poll_interval_seconds)

    def lock_path(self, change_id: str) -> Path:
        return self.directory / f"change-{_UNSAFE_CHARS.sub('_', str(change_id))}.lock"

    @contextmanager
    def acquire(self, change_id: str) -> Iterator[None]:
        start = time.monotonic()
        lock_target = self.lock_path(change_id)
        lock_target.parent.mkdir(parents=True, exist_ok=True)

        with _THREAD_MUTEXES.hold(str(lock_target.resolve()), self.timeout) as acquired:
            if not acquired:
                raise LockTimeoutError(
                    f"Could not acquire lock on change {change_id} within {self.timeout}s",
                    context={"change": str(change_id), "path": str(lock_target)},
                )
            with open(lock_target, "a+") as fh:
                while True:
                    try:
                        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                        break
                    except OSError:
                        if (time.monotonic() - start) >= self.timeout:
                            raise LockTimeoutError(
                                f"Could not acquire lock on change {change_id} within {self.timeout}s",
                                context={"change": str(change_id), "path": str(lock_target)},
                            ) from None
                        time.sleep(self.poll_interval)
                logger.debug("Acquired lock %s", lock_target)
                try:
                    yield
                finally:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


__all__ = ["InProcessChangeLock", "FileChangeLock"]
