#!/usr/bin/env python3
"""Backup scheduler service.

This script runs as a long-lived service that fires a backup of all
configured databases on a cron schedule. It can run in two modes:
1. Direct mode: Runs the backup in this process
2. API mode: Asks the backup API to start a run (POST /backup/run?trigger=scheduled)

Usage:
    python runner.py [--cron "0 */3 * * *"] [--mode direct|api] [--once]
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from typing import Optional

import httpx

from api.logging_config import configure_logging, get_logger
from api.settings import settings

logger = get_logger(__name__)


def setup_logging() -> None:
    """Configure logging for the runner process."""

    try:
        configure_logging(
            log_dir=settings.LOG_DIR,
            log_level=settings.LOG_LEVEL,
            debug=settings.DEBUG,
            log_filename=os.environ.get("RUNNER_LOG_FILENAME", "db-backup-runner.log"),
        )
    except ValueError:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


async def trigger_via_api(
    api_url: str,
    api_key: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Ask the backup API to start a scheduled run.

    A run the API refuses (empty target list, run in progress) is reported to
    the notify channel by the API itself.

    Args:
        api_url: Base URL of the backup API.
        api_key: Owner API key.
        transport: Optional httpx transport (tests).

    Returns:
        dict: API response.
    """

    endpoint = f"{api_url}/backup/run"
    headers = {"X-Admin-Key": api_key}

    async with httpx.AsyncClient(timeout=30.0, transport=transport) as client:
        response = await client.post(endpoint, headers=headers, params={"trigger": "scheduled"})
        response.raise_for_status()
        return response.json()


async def run_once(
    mode: str,
    api_url: str = "",
    api_key: str = "",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Run one backup cycle.

    Args:
        mode: 'api' or 'direct'.
        api_url: API URL for API mode.
        api_key: API key for API mode.
        transport: Optional httpx transport for API mode (tests).
    """

    try:
        if mode == "api":
            result = await trigger_via_api(api_url, api_key, transport=transport)
            logger.info("Backup run accepted by API: %s", result.get("message", result))
            return

        # Import here to avoid opening stores when running in API mode
        from backend.services.backup.service import run_scheduled_backup

        summary = await run_scheduled_backup()
        if summary is not None and summary.failed:
            logger.error("Failed databases: %s", ", ".join(summary.failed_targets))

    except httpx.HTTPStatusError as e:
        logger.error("Backup API refused the run (HTTP %s): %s", e.response.status_code, e.response.text)
    except Exception as e:
        logger.error("Backup cycle failed: %s", e)


async def wait_for_api_ready(api_url: str, timeout_seconds: int = 120) -> None:
    """Wait until the API health endpoint is reachable.

    Args:
        api_url: Base URL of the backup API.
        timeout_seconds: Maximum time to wait for the API.
    """

    deadline = time.time() + timeout_seconds
    health_url = f"{api_url}/health"

    async with httpx.AsyncClient(timeout=5.0) as client:
        while time.time() < deadline:
            try:
                resp = await client.get(health_url)
                if resp.status_code == 200:
                    return
            except httpx.HTTPError:
                pass

            await asyncio.sleep(1)


async def main_loop(cron: str, timezone: str, mode: str, api_url: str = "", api_key: str = "") -> None:
    """Run the cron scheduler until the process is stopped.

    Args:
        cron: Crontab expression.
        timezone: Time zone the expression is evaluated in.
        mode: 'api' or 'direct'.
        api_url: API URL for API mode.
        api_key: API key for API mode.
    """

    from backend.services.backup.scheduler import build_scheduler

    logger.info("Backup runner started (mode=%s, cron=%r, timezone=%s)", mode, cron, timezone)

    if mode == "api":
        logger.info("Waiting for API to become ready...")
        await wait_for_api_ready(api_url)
        logger.info("API is ready")

    async def job() -> None:
        await run_once(mode, api_url, api_key)

    scheduler = build_scheduler(cron, timezone=timezone, job=job)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser; defaults come from settings and the environment."""

    parser = argparse.ArgumentParser(description="Database backup scheduler")
    parser.add_argument(
        "--cron",
        default=settings.CRON_SCHEDULE,
        help="Crontab expression for backup runs (default: CRON_SCHEDULE or '0 */3 * * *')",
    )
    parser.add_argument(
        "--timezone",
        default=settings.SCHEDULER_TIMEZONE,
        help="Time zone the cron expression is evaluated in (default: UTC)",
    )
    parser.add_argument(
        "--mode",
        choices=["api", "direct"],
        default=os.environ.get("RUNNER_MODE", "direct"),
        help="Execution mode (default: direct)",
    )
    parser.add_argument(
        "--api-url",
        default=os.environ.get("BACKUP_API_URL", "http://localhost:8000"),
        help="Backup API URL for API mode",
    )
    parser.add_argument(
        "--api-key",
        default=settings.get_admin_api_key() or "",
        help="Owner API key for API mode",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one backup immediately and exit",
    )

    return parser


def main():
    """Entry point."""

    setup_logging()
    args = build_parser().parse_args()

    if args.mode == "api" and not args.api_key:
        logger.error("API key required for API mode. Set ADMIN_API_KEY, ADMIN_API_KEY_FILE or use --api-key")
        sys.exit(1)

    if args.once:
        asyncio.run(run_once(args.mode, args.api_url, args.api_key))
    else:
        asyncio.run(main_loop(args.cron, args.timezone, args.mode, args.api_url, args.api_key))


if __name__ == "__main__":
    main()
