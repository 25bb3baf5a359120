"""Channel resolution from settings.

Adding a new channel backend should generally only require implementing a
`ReportChannel` under `backend.services.backup.channels.*` and extending
`resolve_channel` with the new backend name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from api.settings import Settings
from backend.services.backup.channels.base import ReportChannel
from backend.services.backup.channels.discord import fetch_discord_channel
from backend.services.backup.channels.local import LocalDirectoryChannel
from backend.services.backup.errors import ConfigurationError


logger = logging.getLogger(__name__)


async def resolve_channel(settings: Settings, channel_id: str) -> Optional[ReportChannel]:
    """Resolve a channel reference into a channel handle.

    Args:
        settings: Application settings.
        channel_id: Channel reference (Discord channel id or local sub-directory).

    Returns:
        Optional[ReportChannel]: Channel, or None when the reference or the
        Discord token is unset.

    Raises:
        ConfigurationError: When CHANNEL_BACKEND is unsupported.
    """

    reference = str(channel_id or "").strip()
    if not reference:
        return None

    backend = settings.CHANNEL_BACKEND.strip().lower()

    if backend == "local":
        return LocalDirectoryChannel(Path(settings.LOCAL_CHANNEL_DIR) / reference)

    if backend == "discord":
        token = settings.get_discord_token()
        if not token:
            logger.warning("DISCORD_TOKEN is not configured; channel %s cannot be resolved", reference)
            return None
        return await fetch_discord_channel(
            token=token,
            channel_id=reference,
            api_url=settings.DISCORD_API_URL,
            timeout=settings.DISCORD_TIMEOUT,
        )

    raise ConfigurationError(f"Unsupported channel backend: {settings.CHANNEL_BACKEND}")
