"""File-based lock preventing overlapping backup runs.

The lock is a JSON file created with ``O_EXCL`` so two processes (for
example the scheduler runner and a manual trigger through the API) cannot
both start a run. A lock older than the timeout is considered stale, left
behind by a crashed process, and is replaced.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from backend.services.backup.errors import RunInProgressError


logger = logging.getLogger(__name__)

LOCK_FILENAME = "backup.lock"
DEFAULT_LOCK_TIMEOUT = 7200  # 2 hours in seconds


class RunLock:
    """Exclusive lock for backup runs."""

    def __init__(self, lock_dir: Path | str, *, timeout: int = DEFAULT_LOCK_TIMEOUT):
        """Initialize the lock.

        Args:
            lock_dir: Directory holding the lock file.
            timeout: Seconds after which an existing lock is stale.
        """

        self.lock_file = Path(lock_dir) / LOCK_FILENAME
        self.timeout = timeout

    def _read(self) -> Optional[Dict[str, Any]]:
        try:
            return json.loads(self.lock_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            # Unreadable or half-written lock ages from its mtime.
            try:
                mtime = self.lock_file.stat().st_mtime
            except OSError:
                return None
            return {"operation": "backup", "timestamp": mtime}

    def _is_stale(self, data: Dict[str, Any]) -> bool:
        try:
            timestamp = float(data.get("timestamp", 0))
        except (TypeError, ValueError):
            timestamp = 0.0
        return time.time() - timestamp >= self.timeout

    def check(self) -> Optional[str]:
        """Return the operation holding the lock, or None when free."""

        data = self._read()
        if data is None or self._is_stale(data):
            return None
        return str(data.get("operation") or "backup")

    def acquire(self, operation: str = "backup") -> None:
        """Take the lock.

        Args:
            operation: Label stored in the lock file.

        Raises:
            RunInProgressError: When a non-stale lock is held.
        """

        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"operation": operation, "pid": os.getpid(), "timestamp": time.time()})

        for _ in range(2):
            try:
                fd = os.open(str(self.lock_file), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                data = self._read()
                if data is not None and not self._is_stale(data):
                    raise RunInProgressError(
                        f"Cannot start {operation}: {data.get('operation', 'backup')} run is already in progress"
                    )
                logger.warning("Replacing stale run lock %s", self.lock_file)
                self.lock_file.unlink(missing_ok=True)
                continue

            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            return

        raise RunInProgressError(f"Cannot start {operation}: failed to acquire run lock {self.lock_file}")

    def release(self) -> None:
        """Release the lock; errors are logged and ignored."""

        try:
            self.lock_file.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to release run lock %s: %s", self.lock_file, exc)

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
