import httpx
import pytest

from backend.services.backup.channels.discord import fetch_discord_channel
from backend.services.backup.errors import DeliveryError, DestinationUnsetError
from backend.services.backup.transmitter import Transmitter, format_size_mb
from conftest import RecordingChannel


def test_format_size_mb():
    assert format_size_mb(0) == "0.00 MB"
    assert format_size_mb(1572864) == "1.50 MB"


async def test_send_attaches_file_with_size_caption(tmp_path):
    artifact = tmp_path / "shop_2024-05-17.zip"
    artifact.write_bytes(b"x" * 2048)
    channel = RecordingChannel("files")

    receipt = await Transmitter().send(channel, artifact, "📦 Backup `shop`")

    assert channel.files == [
        {"name": "shop_2024-05-17.zip", "caption": "📦 Backup `shop` (`0.00 MB`)", "size": 2048, "exists": True}
    ]
    assert receipt.destination == "files"
    assert receipt.size_bytes == 2048
    assert receipt.message_id == "1"


async def test_unset_destination_is_a_distinct_error(tmp_path):
    artifact = tmp_path / "shop.zip"
    artifact.write_bytes(b"data")

    with pytest.raises(DestinationUnsetError) as exc_info:
        await Transmitter().send(None, artifact, "label")

    assert str(exc_info.value) == "Backup channel not set"


async def test_channel_failure_becomes_delivery_error(tmp_path):
    artifact = tmp_path / "shop.zip"
    artifact.write_bytes(b"data")

    with pytest.raises(DeliveryError) as exc_info:
        await Transmitter().send(RecordingChannel("files", fail=True), artifact, "label")

    assert not isinstance(exc_info.value, DestinationUnsetError)


async def test_unreachable_configured_channel_is_not_reported_as_unset(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    artifact = tmp_path / "shop.zip"
    artifact.write_bytes(b"data")
    channel = await fetch_discord_channel(
        token="t", channel_id="123", api_url="https://discord.test/api/v10", transport=httpx.MockTransport(handler)
    )

    with pytest.raises(DeliveryError) as exc_info:
        await Transmitter().send(channel, artifact, "📦 Backup `shop`")

    assert not isinstance(exc_info.value, DestinationUnsetError)
    assert "Backup channel not set" not in str(exc_info.value)


async def test_missing_artifact_is_a_delivery_error(tmp_path):
    channel = RecordingChannel("files")

    with pytest.raises(DeliveryError):
        await Transmitter().send(channel, tmp_path / "gone.zip", "label")

    assert channel.files == []
