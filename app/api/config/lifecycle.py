"""Application lifecycle event handlers."""
import logging

from fastapi import FastAPI

from api.logging_config import configure_logging
from api.settings import settings
from backend.services.backup.scheduler import build_scheduler


logger = logging.getLogger(__name__)


def warn_missing_channels() -> None:
    """Log a warning for each unset channel reference."""
    if not settings.BACKUP_CHANNEL_ID:
        logger.warning("BACKUP_CHANNEL_ID is empty: backup archives will not be delivered.")
    if not settings.NOTIFY_CHANNEL_ID:
        logger.warning("NOTIFY_CHANNEL_ID is empty: failure and summary reports will not be sent.")
    if settings.CHANNEL_BACKEND.strip().lower() == "discord" and not settings.get_discord_token():
        logger.warning("DISCORD_TOKEN is not set: Discord channels cannot be resolved.")


def setup_lifecycle_events(app: FastAPI) -> None:
    """
    Configure application lifecycle events (startup and shutdown).

    When SCHEDULER_ENABLED is set, the cron scheduler runs inside the API
    process; otherwise scheduling is left to the separate runner.

    Args:
        app: The FastAPI application instance
    """
    @app.on_event("startup")
    async def startup_event():
        """Configure logging and start the backup scheduler."""
        configure_logging(
            log_dir=settings.LOG_DIR,
            log_level=settings.LOG_LEVEL,
            debug=settings.DEBUG,
            log_filename=settings.LOG_FILENAME,
        )
        warn_missing_channels()

        app.state.scheduler = None
        if settings.SCHEDULER_ENABLED:
            scheduler = build_scheduler(settings.CRON_SCHEDULE, timezone=settings.SCHEDULER_TIMEZONE)
            scheduler.start()
            app.state.scheduler = scheduler

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop the backup scheduler."""
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)
