"""Wiring of the backup engine and the entry points used by triggers.

Both the cron scheduler and the manual trigger go through this module: they
resolve the notify/transfer channels, run the orchestrator, and report any
error that escapes the run (empty configuration, overlapping run) through
the failure-reporting path.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from api.settings import Settings, settings as default_settings
from backend.services.backup.channels.base import ReportChannel
from backend.services.backup.channels.factory import resolve_channel
from backend.services.backup.dumper import MySQLConfig, MySQLDumper
from backend.services.backup.errors import ConfigurationError
from backend.services.backup.models import BatchSummary
from backend.services.backup.notifier import Notifier
from backend.services.backup.orchestrator import BackupOrchestrator
from backend.services.backup.run_lock import RunLock
from backend.services.backup.target_store import JsonTargetStore, SqlTargetStore, TargetStore


logger = logging.getLogger(__name__)


def build_target_store(settings: Settings) -> TargetStore:
    """Create the configured target store.

    Raises:
        ConfigurationError: When TARGET_STORE is unsupported.
    """

    kind = settings.TARGET_STORE.strip().lower()
    if kind == "json":
        return JsonTargetStore(settings.TARGETS_FILE)
    if kind == "sql":
        return SqlTargetStore(settings.TARGETS_DATABASE_URL)
    raise ConfigurationError(f"Unsupported target store: {settings.TARGET_STORE}")


def build_orchestrator(settings: Settings) -> BackupOrchestrator:
    """Create an orchestrator wired from settings."""

    dumper = MySQLDumper(
        MySQLConfig(
            host=settings.MYSQL_HOST,
            port=settings.MYSQL_PORT,
            user=settings.MYSQL_USER,
            password=settings.get_mysql_password(),
            connect_timeout=settings.MYSQL_CONNECT_TIMEOUT,
        )
    )
    return BackupOrchestrator(
        store=build_target_store(settings),
        dumper=dumper,
        work_dir=settings.WORK_DIR,
        run_lock=RunLock(settings.WORK_DIR, timeout=settings.RUN_LOCK_TIMEOUT),
    )


async def resolve_channels(settings: Settings) -> Tuple[Optional[ReportChannel], Optional[ReportChannel]]:
    """Resolve the (notify, file) channels; unset channels come back as None."""

    notify = await resolve_channel(settings, settings.NOTIFY_CHANNEL_ID)
    file_channel = await resolve_channel(settings, settings.BACKUP_CHANNEL_ID)
    return notify, file_channel


# Singleton instance
_orchestrator: Optional[BackupOrchestrator] = None


def get_backup_orchestrator() -> BackupOrchestrator:
    """Get the process-wide orchestrator built from the default settings."""

    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(default_settings)
    return _orchestrator


async def run_backup(
    *,
    trigger: str,
    orchestrator: Optional[BackupOrchestrator] = None,
    settings: Optional[Settings] = None,
) -> Optional[BatchSummary]:
    """Run a full backup and report errors that abort the run.

    Args:
        trigger: "scheduled" or "manual"; used in logs and the error title.
        orchestrator: Orchestrator to use (defaults to the singleton).
        settings: Settings to resolve channels from.

    Returns:
        Optional[BatchSummary]: The summary, or None when the run could not start.
    """

    settings = settings or default_settings
    orchestrator = orchestrator or get_backup_orchestrator()
    logger.info("[%s] Triggered backup", trigger)

    notify: Optional[ReportChannel] = None
    try:
        notify, file_channel = await resolve_channels(settings)
        return await orchestrator.run(notify, file_channel)
    except Exception as exc:
        logger.error("%s backup error: %s", trigger.capitalize(), exc)
        await orchestrator.notifier.report_run_error(notify, exc, title=run_error_title(trigger))
        return None


def run_error_title(trigger: str) -> str:
    return f"❌ {trigger.capitalize()} backup error"


async def report_run_error(
    *,
    trigger: str,
    error: BaseException,
    orchestrator: Optional[BackupOrchestrator] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """Report an error that kept a run from starting to the notify channel.

    Used when a run is refused before `run_backup` is reached, e.g. when the
    scheduler asks the API to start a run and the target list is empty.

    Args:
        trigger: "scheduled" or "manual"; used in the error title.
        error: The refusal reason.
        orchestrator: Orchestrator whose notifier sends the report.
        settings: Settings to resolve the notify channel from.

    Returns:
        bool: True when the report was sent.
    """

    settings = settings or default_settings
    orchestrator = orchestrator or get_backup_orchestrator()
    try:
        notify, _ = await resolve_channels(settings)
    except Exception as exc:
        logger.warning("Cannot resolve notify channel to report %s backup error: %s", trigger, exc)
        return False
    return await orchestrator.notifier.report_run_error(notify, error, title=run_error_title(trigger))


async def run_scheduled_backup() -> Optional[BatchSummary]:
    """Entry point for the cron scheduler."""

    return await run_backup(trigger="scheduled")


async def run_manual_backup() -> Optional[BatchSummary]:
    """Entry point for the manual trigger (runs as a background task)."""

    return await run_backup(trigger="manual")
