"""Delivery of backup artifacts to the transfer channel."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from backend.services.backup.channels.base import ReportChannel
from backend.services.backup.errors import ChannelError, DeliveryError, DestinationUnsetError
from backend.services.backup.models import DeliveryReceipt


logger = logging.getLogger(__name__)


def format_size_mb(size_bytes: int) -> str:
    """Format a byte size as mebibytes with two decimals (e.g. ``1.50 MB``)."""

    return f"{size_bytes / (1024 * 1024):.2f} MB"


class Transmitter:
    """Send artifacts with a label and size caption."""

    async def send(self, channel: Optional[ReportChannel], artifact_path: Path, label: str) -> DeliveryReceipt:
        """Deliver an artifact to a channel.

        Args:
            channel: Destination channel; None means no destination is configured.
            artifact_path: Archive to deliver.
            label: Human-readable label placed before the size in the caption.

        Returns:
            DeliveryReceipt: Delivery details.

        Raises:
            DestinationUnsetError: When ``channel`` is None. No request is made.
            DeliveryError: When the artifact cannot be read or the channel fails.
        """

        if channel is None:
            raise DestinationUnsetError()

        artifact_path = Path(artifact_path)
        try:
            size_bytes = artifact_path.stat().st_size
        except OSError as exc:
            raise DeliveryError(f"Cannot read artifact {artifact_path.name}: {exc}") from exc

        size_label = format_size_mb(size_bytes)
        caption = f"{label} (`{size_label}`)"

        try:
            message_id = await channel.send_file(artifact_path, caption)
        except ChannelError as exc:
            raise DeliveryError(f"Failed to deliver {artifact_path.name} to {channel.name}: {exc}") from exc

        logger.info("Delivered artifact=%s size=%s to %s", artifact_path.name, size_label, channel.name)
        return DeliveryReceipt(
            destination=channel.name,
            artifact_name=artifact_path.name,
            size_bytes=size_bytes,
            size_label=size_label,
            message_id=message_id,
        )
