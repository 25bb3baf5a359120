"""Cron scheduling of backup runs.

``CRON_SCHEDULE`` is a standard five-field crontab expression evaluated in
``SCHEDULER_TIMEZONE``. The default ``0 */3 * * *`` runs every three hours on
the hour.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from backend.services.backup.errors import ConfigurationError
from backend.services.backup.service import run_scheduled_backup


logger = logging.getLogger(__name__)

JOB_ID = "database_backup"


def build_cron_trigger(expression: str, timezone: str = "UTC") -> CronTrigger:
    """Parse a crontab expression.

    Args:
        expression: Five-field crontab expression.
        timezone: Time zone name the expression is evaluated in.

    Returns:
        CronTrigger: Trigger for the expression.

    Raises:
        ConfigurationError: When the expression is invalid.
    """

    try:
        return CronTrigger.from_crontab(str(expression).strip(), timezone=timezone)
    except (ValueError, LookupError) as exc:
        raise ConfigurationError(f"Invalid CRON_SCHEDULE {expression!r}: {exc}") from exc


def build_scheduler(
    cron_schedule: str,
    *,
    timezone: str = "UTC",
    job: Optional[Callable[[], Awaitable[object]]] = None,
) -> AsyncIOScheduler:
    """Build a scheduler with the backup job registered.

    Returns a configured but not yet started scheduler; the caller starts it
    inside a running event loop and shuts it down on exit.

    Args:
        cron_schedule: Crontab expression.
        timezone: Scheduler time zone.
        job: Coroutine function to run, defaults to `run_scheduled_backup`.

    Returns:
        AsyncIOScheduler: The scheduler.
    """

    trigger = build_cron_trigger(cron_schedule, timezone)
    scheduler = AsyncIOScheduler(timezone=timezone)
    scheduler.add_job(
        job or run_scheduled_backup,
        trigger=trigger,
        id=JOB_ID,
        name="Back up all configured databases",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    logger.info("Scheduled database backups with cron=%r timezone=%s", cron_schedule, timezone)
    return scheduler
