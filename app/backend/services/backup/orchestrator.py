"""Backup run orchestration.

One run walks the configured targets strictly in order and, for each one,
dumps the database, zips the dump, sends the archive to the transfer channel
and removes both local files. A failing target is counted, logged and
reported, and the run moves on. After the last target a summary is sent to
the notify channel.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from backend.services.backup.channels.base import ReportChannel
from backend.services.backup.dumper import MySQLDumper
from backend.services.backup.errors import EmptyConfigurationError
from backend.services.backup.models import BackupOutcome, BatchSummary
from backend.services.backup.notifier import Notifier
from backend.services.backup.packager import Packager
from backend.services.backup.run_lock import RunLock
from backend.services.backup.target_store import TargetStore
from backend.services.backup.transmitter import Transmitter


logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def artifact_paths(work_dir: Path, target: str, day: str) -> Tuple[Path, Path]:
    """Return the (dump, archive) paths for a target on a given day.

    Args:
        work_dir: Staging directory.
        target: Database name.
        day: ISO date (YYYY-MM-DD).

    Returns:
        Tuple[Path, Path]: ``<target>_<day>.sql`` and ``<target>_<day>.zip``.
    """

    stem = f"{_UNSAFE_FILENAME_CHARS.sub('_', target)}_{day}"
    return work_dir / f"{stem}.sql", work_dir / f"{stem}.zip"


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except Exception as exc:
        logger.warning("Failed to remove %s: %s", path, exc)


class BackupOrchestrator:
    """Run dump -> package -> transmit -> cleanup over all configured targets."""

    def __init__(
        self,
        *,
        store: TargetStore,
        dumper: MySQLDumper,
        work_dir: Path | str,
        packager: Optional[Packager] = None,
        transmitter: Optional[Transmitter] = None,
        notifier: Optional[Notifier] = None,
        run_lock: Optional[RunLock] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize the orchestrator.

        Args:
            store: Source of the configured target list.
            dumper: Produces dump documents.
            work_dir: Directory for the transient ``.sql`` and ``.zip`` files.
            packager: Compresses dumps.
            transmitter: Delivers archives.
            notifier: Sends failure and summary reports.
            run_lock: Guard against overlapping runs (defaults to a lock in work_dir).
            clock: Returns the current UTC time; used for file names.
        """

        self.store = store
        self.dumper = dumper
        self.work_dir = Path(work_dir)
        self.packager = packager or Packager()
        self.transmitter = transmitter or Transmitter()
        self.notifier = notifier or Notifier()
        self.run_lock = run_lock or RunLock(self.work_dir)
        self.clock = clock

    def load_targets(self):
        """Return the configured targets.

        Raises:
            EmptyConfigurationError: When no targets are configured.
        """

        targets = list(self.store.load())
        if not targets:
            raise EmptyConfigurationError()
        return targets

    async def run(
        self,
        notify_channel: Optional[ReportChannel],
        file_channel: Optional[ReportChannel],
    ) -> BatchSummary:
        """Back up every configured target.

        Args:
            notify_channel: Channel for failure and summary reports (None disables them).
            file_channel: Channel receiving the archives.

        Returns:
            BatchSummary: Counts and duration of the run.

        Raises:
            EmptyConfigurationError: When no targets are configured; nothing is processed.
            RunInProgressError: When another run holds the lock; nothing is processed.
        """

        targets = await run_in_threadpool(self.load_targets)
        self.run_lock.acquire("backup")
        try:
            return await self._run_targets(targets, notify_channel, file_channel)
        finally:
            self.run_lock.release()

    async def _run_targets(self, targets, notify_channel, file_channel) -> BatchSummary:
        logger.info("Starting backup run for %s database(s)", len(targets))
        summary = BatchSummary(total=len(targets))
        started = time.monotonic()

        for target in targets:
            outcome = await self.backup_target(target, notify_channel, file_channel)
            summary.record(outcome)

        summary.duration_seconds = time.monotonic() - started
        logger.info(
            "Backup run finished total=%s succeeded=%s failed=%s duration=%.2fs",
            summary.total,
            summary.succeeded,
            summary.failed,
            summary.duration_seconds,
        )

        await self.notifier.report_summary(notify_channel, summary)
        return summary

    async def backup_target(
        self,
        target: str,
        notify_channel: Optional[ReportChannel],
        file_channel: Optional[ReportChannel],
    ) -> BackupOutcome:
        """Process one target; never raises for per-target failures.

        Args:
            target: Database name.
            notify_channel: Channel for the failure report.
            file_channel: Channel receiving the archive.

        Returns:
            BackupOutcome: Result for the target.
        """

        day = self.clock().date().isoformat()
        sql_path, zip_path = artifact_paths(self.work_dir, target, day)

        try:
            document = await run_in_threadpool(self.dumper.dump, target)
            await run_in_threadpool(self.packager.compress, document, zip_path, source_path=sql_path)
            _remove_quietly(sql_path)
            await self.transmitter.send(file_channel, zip_path, f"📦 Backup `{target}`")
        except Exception as exc:
            logger.error("Backup failed for %s: %s", target, exc)
            await self.notifier.report_failure(notify_channel, target, exc)
            return BackupOutcome(target=target, success=False, error=str(exc))
        finally:
            _remove_quietly(zip_path)
            _remove_quietly(sql_path)

        logger.info("Backup succeeded for %s", target)
        return BackupOutcome(target=target, success=True)
