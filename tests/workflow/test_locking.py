from __future__ import annotations

import threading
import time

import pytest

from reviewflow.core.config import LockingConfig
from reviewflow.core.exceptions import LockTimeoutError
from reviewflow.core.workflow import FileChangeLock, InProcessChangeLock
from reviewflow.core.workflow import locking


def test_in_process_lock_serializes_same_change() -> None:
    lock = InProcessChangeLock()
    events = []

    def worker(name: str) -> None:
        with lock.acquire("42"):
            events.append(f"{name}-in")
            time.sleep(0.05)
            events.append(f"{name}-out")

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # Each critical section completes before the next starts.
    assert events[0].endswith("-in") and events[1].endswith("-out")
    assert events[2].endswith("-in") and events[3].endswith("-out")


def test_in_process_lock_times_out() -> None:
    lock = InProcessChangeLock(timeout=0.05)
    with lock.acquire("1"):
        with pytest.raises(LockTimeoutError):
            with lock.acquire("1"):
                pass
        # Other changes are independent.
        with lock.acquire("2"):
            pass


def test_file_lock_creates_lock_file(tmp_path) -> None:
    lock = FileChangeLock(tmp_path / "locks", timeout=1.0)

    with lock.acquire("7"):
        assert lock.lock_path("7").exists()

    assert lock.lock_path("7").name == "change-7.lock"
    assert lock.lock_path("../x").name == "change-.._x.lock"


def test_file_lock_times_out_while_held(tmp_path) -> None:
    lock = FileChangeLock(tmp_path, timeout=0.2, poll_interval=0.01)
    holder_ready = threading.Event()
    release = threading.Event()

    def holder() -> None:
        with lock.acquire("9"):
            holder_ready.set()
            release.wait(2)

    t = threading.Thread(target=holder)
    t.start()
    try:
        assert holder_ready.wait(2)
        with pytest.raises(LockTimeoutError):
            with lock.acquire("9"):
                pass
    finally:
        release.set()
        t.join()

    with lock.acquire("9"):
        pass


def test_file_lock_from_config(repo_root, config_dict) -> None:
    config_dict["locking"] = {"timeoutSeconds": 5, "pollIntervalSeconds": 0.5, "directory": "locks"}

    lock = FileChangeLock.from_config(LockingConfig(repo_root, config=config_dict))

    assert lock.directory == repo_root / "locks"
    assert lock.timeout == 5.0
    assert lock.poll_interval == 0.5


def test_in_process_lock_forgets_released_changes() -> None:
    lock = InProcessChangeLock()

    for change_id in range(1, 1001):
        with lock.acquire(str(change_id)):
            assert len(lock._locks) == 1

    assert len(lock._locks) == 0


def test_in_process_lock_keeps_entry_while_a_waiter_remains() -> None:
    lock = InProcessChangeLock(timeout=0.05)

    with lock.acquire("3"):
        with pytest.raises(LockTimeoutError):
            with lock.acquire("3"):
                pass
        assert len(lock._locks) == 1

    assert len(lock._locks) == 0


def test_file_lock_forgets_thread_mutexes(tmp_path) -> None:
    lock = FileChangeLock(tmp_path, timeout=1.0)
    before = len(locking._THREAD_MUTEXES)

    for change_id in ("11", "12", "13"):
        with lock.acquire(change_id):
            pass

    assert len(locking._THREAD_MUTEXES) == before
