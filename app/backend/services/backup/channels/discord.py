"""Discord channel backend using the Discord REST API.

Messages are posted with a bot token to ``/channels/{id}/messages``. No
gateway connection is opened; the bot only needs the ``Send Messages``,
``Embed Links`` and ``Attach Files`` permissions in the target channels.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from backend.services.backup.channels.base import Embed, ReportChannel
from backend.services.backup.errors import ChannelError


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://discord.com/api/v10"


class DiscordChannel(ReportChannel):
    """A Discord text channel addressed by id."""

    def __init__(
        self,
        *,
        token: str,
        channel_id: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        name: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the channel.

        Args:
            token: Bot token.
            channel_id: Discord channel id.
            api_url: REST API base URL.
            timeout: Request timeout in seconds.
            name: Channel name for log messages.
            transport: Optional httpx transport (tests).
        """

        self.token = token
        self.channel_id = str(channel_id)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.name = name or f"discord:{self.channel_id}"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bot {self.token}"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _post_message(self, *, json_payload: Optional[Dict[str, Any]] = None, files=None, data=None) -> Optional[str]:
        url = f"/channels/{self.channel_id}/messages"
        try:
            async with self._client() as client:
                if files is not None:
                    response = await client.post(url, data=data, files=files)
                else:
                    response = await client.post(url, json=json_payload)
        except httpx.HTTPError as exc:
            raise ChannelError(f"Discord request to {self.name} failed: {exc}") from exc

        if response.status_code >= 400:
            raise ChannelError(
                f"Discord API rejected message to {self.name}: HTTP {response.status_code} {response.text[:300]}"
            )

        try:
            return str(response.json().get("id") or "") or None
        except ValueError:
            return None

    async def send_message(self, content: str) -> Optional[str]:
        return await self._post_message(json_payload={"content": content})

    async def send_embed(self, embed: Embed) -> Optional[str]:
        return await self._post_message(json_payload={"embeds": [embed.to_payload()]})

    async def send_file(self, path: Path, caption: str) -> Optional[str]:
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise ChannelError(f"Cannot read attachment {path}: {exc}") from exc

        payload = {
            "content": caption,
            "attachments": [{"id": 0, "filename": path.name}],
        }
        files = {"files[0]": (path.name, content, "application/octet-stream")}
        return await self._post_message(data={"payload_json": json.dumps(payload)}, files=files)


async def fetch_discord_channel(
    *,
    token: str,
    channel_id: str,
    api_url: str = DEFAULT_API_URL,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[DiscordChannel]:
    """Look up a channel and return a handle for it.

    Args:
        token: Bot token.
        channel_id: Channel id.
        api_url: REST API base URL.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests).

    Returns:
        Optional[DiscordChannel]: The channel, or None when the token or the
        reference is unset. A channel that cannot be looked up is still returned
        unverified, so its sends fail as delivery errors rather than as a
        missing destination.
    """

    if not token or not str(channel_id or "").strip():
        return None

    channel = DiscordChannel(
        token=token,
        channel_id=str(channel_id).strip(),
        api_url=api_url,
        timeout=timeout,
        transport=transport,
    )
    try:
        async with channel._client() as client:
            response = await client.get(f"/channels/{channel.channel_id}")
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch Discord channel id=%s, using it unverified: %s", channel_id, exc)
        return channel

    if response.status_code != 200:
        logger.warning(
            "Discord channel id=%s lookup returned HTTP %s, using it unverified", channel_id, response.status_code
        )
        return channel

    try:
        channel_name = response.json().get("name")
    except ValueError:
        channel_name = None
    if channel_name:
        channel.name = f"discord:#{channel_name}"
    return channel
