"""Status notifications for backup runs.

Every public method is best-effort: an absent channel is a silent no-op and
any error raised while sending is logged and swallowed, so reporting can
never change the outcome of a run.
"""

from __future__ import annotations

import logging
import traceback
from typing import Optional, Union

from backend.services.backup.channels.base import (
    COLOR_GREEN,
    COLOR_RED,
    COLOR_YELLOW,
    Embed,
    EmbedField,
    ReportChannel,
)
from backend.services.backup.models import BatchSummary


logger = logging.getLogger(__name__)

# Discord rejects embed descriptions longer than 4096 characters.
MAX_DESCRIPTION_LENGTH = 4096
_CODE_FENCE = "```"


def format_error_detail(error: Union[BaseException, str, None]) -> str:
    """Render an error with its traceback when one is attached.

    Args:
        error: Exception or message.

    Returns:
        str: Error text.
    """

    if error is None:
        return "Unknown error"
    if isinstance(error, BaseException):
        if error.__traceback__ is not None:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()
        return f"{type(error).__name__}: {error}"
    return str(error)


def code_block(text: str, *, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    """Wrap text in a monospaced block, keeping the tail when it is too long."""

    budget = limit - 2 * len(_CODE_FENCE) - 2
    text = text.replace(_CODE_FENCE, "'''")
    if len(text) > budget:
        text = "..." + text[-(budget - 3):]
    return f"{_CODE_FENCE}\n{text}\n{_CODE_FENCE}"


class Notifier:
    """Send failure and summary reports to the notify channel."""

    def build_failure_embed(self, target: str, error: Union[BaseException, str, None]) -> Embed:
        return Embed(
            title=f"❌ Backup failed: {target}",
            description=code_block(format_error_detail(error)),
            color=COLOR_RED,
        )

    def build_summary_embed(self, summary: BatchSummary) -> Embed:
        return Embed(
            title="📦 Database backup run finished",
            color=COLOR_YELLOW if summary.has_failures else COLOR_GREEN,
            fields=[
                EmbedField(name="📁 Total databases", value=f"`{summary.total}`", inline=True),
                EmbedField(name="✅ Succeeded", value=f"`{summary.succeeded}`", inline=True),
                EmbedField(name="❌ Failed", value=f"`{summary.failed}`", inline=True),
                EmbedField(name="⏱️ Duration", value=f"`{summary.duration_seconds:.2f} s`", inline=False),
            ],
        )

    async def _send(self, channel: Optional[ReportChannel], embed: Embed, *, kind: str) -> bool:
        if channel is None:
            logger.debug("Notification skipped kind=%s (no notify channel)", kind)
            return False

        try:
            await channel.send_embed(embed)
        except Exception:
            logger.exception("Failed to send %s notification to %s", kind, getattr(channel, "name", channel))
            return False
        return True

    async def report_failure(
        self,
        channel: Optional[ReportChannel],
        target: str,
        error: Union[BaseException, str, None],
    ) -> bool:
        """Report a failed target.

        Args:
            channel: Notify channel (None disables reporting).
            target: Database that failed.
            error: Exception or message; tracebacks are included.

        Returns:
            bool: True when the report was sent.
        """

        try:
            embed = self.build_failure_embed(target, error)
        except Exception:
            logger.exception("Failed to build failure notification for target=%s", target)
            return False
        return await self._send(channel, embed, kind="failure")

    async def report_summary(self, channel: Optional[ReportChannel], summary: BatchSummary) -> bool:
        """Report the aggregate result of a run.

        Args:
            channel: Notify channel (None disables reporting).
            summary: Run summary.

        Returns:
            bool: True when the report was sent.
        """

        try:
            embed = self.build_summary_embed(summary)
        except Exception:
            logger.exception("Failed to build summary notification")
            return False
        return await self._send(channel, embed, kind="summary")

    async def report_run_error(
        self,
        channel: Optional[ReportChannel],
        error: Union[BaseException, str, None],
        *,
        title: str = "❌ Scheduled backup error",
    ) -> bool:
        """Report an error that stopped a whole run (e.g. an empty target list)."""

        try:
            embed = Embed(title=title, description=code_block(format_error_detail(error)), color=COLOR_RED)
        except Exception:
            logger.exception("Failed to build run error notification")
            return False
        return await self._send(channel, embed, kind="run-error")
