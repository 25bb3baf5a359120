"""Logging configuration for the database backup service.

This module configures the process-wide Python logger with:
- A custom TRACE level.
- Console output.
- Rotating file output under ``LOG_DIR``, including separate error-only and
  daily log files so failed backup targets are easy to find.

Both the API process and the scheduler runner call `configure_logging` on
startup; repeated calls are no-ops.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional


TRACE_LEVEL_NUM = 5

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _install_trace_level() -> None:
    """Install the TRACE logging level and `Logger.trace` helper."""

    if logging.getLevelName(TRACE_LEVEL_NUM) != "TRACE":
        logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")

    if not hasattr(logging.Logger, "trace"):

        def trace(self: logging.Logger, message: str, *args, **kwargs) -> None:
            if self.isEnabledFor(TRACE_LEVEL_NUM):
                self._log(TRACE_LEVEL_NUM, message, args, **kwargs)

        logging.Logger.trace = trace  # type: ignore[attr-defined]


def resolve_log_level(log_level: str, *, debug: bool = False) -> int:
    """Translate a level name into a numeric logging level.

    Args:
        log_level: Level name (e.g. INFO, DEBUG, TRACE). Empty means "derive from debug".
        debug: When True and no level is given, use DEBUG.

    Returns:
        int: Numeric level.

    Raises:
        ValueError: When the level name is unknown.
    """

    name = str(log_level or "").strip().upper()
    if not name:
        name = "DEBUG" if debug else "INFO"

    if name == "TRACE":
        return TRACE_LEVEL_NUM

    level = getattr(logging, name, None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    return level


def _attach(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler._db_backup_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def configure_logging(
    *,
    log_dir: str = "logs",
    log_level: str = "INFO",
    debug: bool = False,
    log_filename: str = "db-backup.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure application-wide logging.

    Args:
        log_dir: Directory where log files are stored.
        log_level: Root log level name (e.g. INFO, DEBUG, TRACE).
        debug: When True, defaults to DEBUG unless log_level explicitly overrides it.
        log_filename: Log file name (within log_dir).
        max_bytes: Rotate the log file after this size.
        backup_count: Number of rotated files to keep.

    Raises:
        ValueError: When the provided log_level is invalid.
    """

    _install_trace_level()

    root = logging.getLogger()
    if getattr(root, "_db_backup_logging_configured", False):
        return

    level = resolve_log_level(log_level, debug=debug)
    root.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    _attach(root, logging.StreamHandler(), level, formatter)

    stem = Path(log_filename).stem
    suffix = Path(log_filename).suffix or ".log"
    base = Path(log_dir)
    try:
        base.mkdir(parents=True, exist_ok=True)

        for filename, handler_level in ((log_filename, level), (f"{stem}.error{suffix}", logging.ERROR)):
            rotating = RotatingFileHandler(
                filename=str(base / filename),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            _attach(root, rotating, handler_level, formatter)

        for filename, handler_level in ((f"{stem}.day{suffix}", level), (f"{stem}.day.error{suffix}", logging.ERROR)):
            daily = TimedRotatingFileHandler(
                filename=str(base / filename),
                when="midnight",
                backupCount=backup_count,
                utc=True,
                encoding="utf-8",
            )
            daily.suffix = "%Y-%m-%d"
            _attach(root, daily, handler_level, formatter)
    except OSError:
        logging.getLogger(__name__).warning(
            "Failed to configure file logging under %s; continuing with console-only logging",
            log_dir,
        )

    # APScheduler and httpx are chatty at INFO; keep them one level quieter.
    for name in ("apscheduler", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True

    logging.captureWarnings(True)
    root._db_backup_logging_configured = True  # type: ignore[attr-defined]


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger instance.

    Args:
        name: Logger name.

    Returns:
        logging.Logger: Logger instance.
    """

    return logging.getLogger(name or __name__)
