"""Shared fixtures for the backup service test suite.

Nothing here talks to a real MySQL server or to Discord: the dumper gets a
scripted fake connection and channels are in-memory recorders.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from backend.services.backup.channels.base import Embed, ReportChannel
from backend.services.backup.errors import ChannelError
from backend.services.backup.models import DumpDocument
from backend.services.backup.orchestrator import BackupOrchestrator
from backend.services.backup.run_lock import RunLock
from backend.services.backup.target_store import JsonTargetStore


FIXED_NOW = datetime(2024, 5, 17, 8, 30, 0, tzinfo=timezone.utc)


class RecordingChannel(ReportChannel):
    """In-memory channel that records everything sent to it."""

    def __init__(self, name: str = "recording", *, fail: bool = False):
        self.name = name
        self.fail = fail
        self.messages: List[str] = []
        self.embeds: List[Embed] = []
        self.files: List[Dict[str, object]] = []

    def _check(self) -> None:
        if self.fail:
            raise ChannelError(f"{self.name} is down")

    async def send_message(self, content: str) -> Optional[str]:
        self._check()
        self.messages.append(content)
        return str(len(self.messages))

    async def send_embed(self, embed: Embed) -> Optional[str]:
        self._check()
        self.embeds.append(embed)
        return str(len(self.embeds))

    async def send_file(self, path: Path, caption: str) -> Optional[str]:
        self._check()
        path = Path(path)
        self.files.append({"name": path.name, "caption": caption, "size": path.stat().st_size, "exists": path.exists()})
        return str(len(self.files))


class FakeDumper:
    """Dumper returning canned documents or raising canned errors per target."""

    def __init__(self, results: Optional[Dict[str, Union[str, Exception]]] = None):
        self.results = results or {}
        self.calls: List[str] = []

    def dump(self, database: str) -> DumpDocument:
        self.calls.append(database)
        result = self.results.get(database, f"-- Backup for {database}\nCREATE DATABASE IF NOT EXISTS `{database}`;\n")
        if isinstance(result, Exception):
            raise result
        return DumpDocument(database=database, generated_at=FIXED_NOW, text=result)


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def target_store(tmp_path) -> JsonTargetStore:
    return JsonTargetStore(tmp_path / "db_list.json")


@pytest.fixture
def notify_channel() -> RecordingChannel:
    return RecordingChannel("notify")


@pytest.fixture
def file_channel() -> RecordingChannel:
    return RecordingChannel("files")


@pytest.fixture
def make_orchestrator(work_dir, target_store):
    """Factory building an orchestrator around a FakeDumper."""

    def _make(targets: List[str], results: Optional[Dict[str, Union[str, Exception]]] = None, **kwargs):
        target_store.save(targets)
        dumper = FakeDumper(results)
        orchestrator = BackupOrchestrator(
            store=target_store,
            dumper=dumper,
            work_dir=work_dir,
            run_lock=RunLock(work_dir / "locks"),
            clock=lambda: FIXED_NOW,
            **kwargs,
        )
        return orchestrator, dumper

    return _make
