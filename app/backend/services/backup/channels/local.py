"""Local filesystem channel backend.

Primarily intended for development and testing: attachments are copied into
the channel directory and every message or embed is appended to
``messages.jsonl`` next to them.
"""

from __future__ import annotations

import json
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from backend.services.backup.channels.base import Embed, ReportChannel
from backend.services.backup.errors import ChannelError


MESSAGES_FILENAME = "messages.jsonl"


class LocalDirectoryChannel(ReportChannel):
    """A channel backed by a local directory."""

    def __init__(self, base_path: Path | str, *, name: Optional[str] = None):
        self.base_path = Path(base_path)
        self.name = name or f"local:{self.base_path}"

    def _append(self, record: Dict[str, Any]) -> str:
        message_id = uuid.uuid4().hex
        record = {"id": message_id, "sent_at": datetime.now(timezone.utc).isoformat(), **record}
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            with (self.base_path / MESSAGES_FILENAME).open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as exc:
            raise ChannelError(f"Cannot write to {self.name}: {exc}") from exc
        return message_id

    async def send_message(self, content: str) -> Optional[str]:
        return self._append({"type": "message", "content": content})

    async def send_embed(self, embed: Embed) -> Optional[str]:
        return self._append({"type": "embed", "embed": embed.to_payload()})

    async def send_file(self, path: Path, caption: str) -> Optional[str]:
        source = Path(path)
        dest = self.base_path / source.name
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
        except OSError as exc:
            raise ChannelError(f"Cannot copy {source.name} to {self.name}: {exc}") from exc
        return self._append({"type": "file", "content": caption, "filename": source.name})

    def read_messages(self) -> List[Dict[str, Any]]:
        """Return all recorded messages, oldest first."""

        path = self.base_path / MESSAGES_FILENAME
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
