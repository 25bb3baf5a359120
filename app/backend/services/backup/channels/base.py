"""Base interface for reporting and transfer channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


COLOR_RED = 0xED4245
COLOR_YELLOW = 0xFEE75C
COLOR_GREEN = 0x57F287


@dataclass(frozen=True)
class EmbedField:
    """A name/value pair shown inside an embed."""

    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    """Structured status message.

    Attributes:
        title: Headline.
        description: Body text (may contain a code block).
        color: RGB color used as severity indicator.
        fields: Name/value pairs.
        timestamp: Event time, defaults to now (UTC).
    """

    title: str
    description: str = ""
    color: int = COLOR_GREEN
    fields: List[EmbedField] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> Dict[str, Any]:
        """Render the Discord embed JSON shape."""

        payload: Dict[str, Any] = {
            "title": self.title,
            "color": self.color,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.description:
            payload["description"] = self.description
        if self.fields:
            payload["fields"] = [{"name": f.name, "value": f.value, "inline": f.inline} for f in self.fields]
        return payload


class ReportChannel(ABC):
    """A destination accepting text, embeds and file attachments."""

    name: str = "channel"

    @abstractmethod
    async def send_message(self, content: str) -> Optional[str]:
        """Send a plain text message.

        Args:
            content: Message text.

        Returns:
            Optional[str]: Provider message id, when available.
        """

    @abstractmethod
    async def send_embed(self, embed: Embed) -> Optional[str]:
        """Send a structured status message.

        Args:
            embed: Embed to send.

        Returns:
            Optional[str]: Provider message id, when available.
        """

    @abstractmethod
    async def send_file(self, path: Path, caption: str) -> Optional[str]:
        """Send a file attachment with a caption.

        Args:
            path: Local file to attach.
            caption: Message text shown with the file.

        Returns:
            Optional[str]: Provider message id, when available.
        """
