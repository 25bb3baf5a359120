from datetime import datetime, timezone

import pytest
from apscheduler.triggers.cron import CronTrigger

from backend.services.backup.errors import ConfigurationError
from backend.services.backup.scheduler import JOB_ID, build_cron_trigger, build_scheduler
from backend.services.backup.service import run_scheduled_backup


def test_default_schedule_fires_every_three_hours():
    trigger = build_cron_trigger("0 */3 * * *", "UTC")
    now = datetime(2024, 5, 17, 7, 15, tzinfo=timezone.utc)

    first = trigger.get_next_fire_time(None, now)
    second = trigger.get_next_fire_time(first, first)

    assert first == datetime(2024, 5, 17, 9, 0, tzinfo=timezone.utc)
    assert (second - first).total_seconds() == 3 * 3600


def test_invalid_expression_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        build_cron_trigger("every three hours")


def test_invalid_timezone_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        build_cron_trigger("0 */3 * * *", "Mars/Olympus")


def test_scheduler_registers_single_backup_job():
    scheduler = build_scheduler("30 2 * * *")

    job = scheduler.get_job(JOB_ID)

    assert job is not None
    assert isinstance(job.trigger, CronTrigger)
    assert job.func is run_scheduled_backup
    assert job.max_instances == 1
    assert job.coalesce is True
    assert not scheduler.running


def test_scheduler_accepts_custom_job():
    async def job():
        return None

    scheduler = build_scheduler("0 * * * *", job=job)

    assert scheduler.get_job(JOB_ID).func is job
