import json
import os
import time

import pytest

from backend.services.backup.errors import RunInProgressError
from backend.services.backup.run_lock import LOCK_FILENAME, RunLock


def test_acquire_and_release(tmp_path):
    lock = RunLock(tmp_path)

    lock.acquire("backup")
    assert lock.check() == "backup"
    data = json.loads((tmp_path / LOCK_FILENAME).read_text())
    assert data["pid"] == os.getpid()

    lock.release()
    assert lock.check() is None
    assert not (tmp_path / LOCK_FILENAME).exists()


def test_second_acquire_is_refused(tmp_path):
    RunLock(tmp_path).acquire("backup")

    with pytest.raises(RunInProgressError):
        RunLock(tmp_path).acquire("backup")


def test_stale_lock_is_replaced(tmp_path):
    (tmp_path / LOCK_FILENAME).write_text(json.dumps({"operation": "backup", "timestamp": time.time() - 10}))
    lock = RunLock(tmp_path, timeout=5)

    assert lock.check() is None
    lock.acquire("backup")

    assert json.loads((tmp_path / LOCK_FILENAME).read_text())["timestamp"] > time.time() - 5


def test_unreadable_lock_ages_from_mtime(tmp_path):
    path = tmp_path / LOCK_FILENAME
    path.write_text("garbage")

    assert RunLock(tmp_path, timeout=3600).check() == "backup"

    old = time.time() - 7200
    os.utime(path, (old, old))
    assert RunLock(tmp_path, timeout=3600).check() is None


def test_context_manager_releases_on_error(tmp_path):
    lock = RunLock(tmp_path)

    with pytest.raises(ValueError):
        with lock:
            assert lock.check() == "backup"
            raise ValueError("boom")

    assert lock.check() is None
