"""Value objects passed between the backup pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class DumpDocument:
    """Logical dump of one database.

    Attributes:
        database: Source database name.
        generated_at: UTC time the dump was produced.
        text: Replayable SQL text (header, CREATE/USE directives, tables).
        table_count: Number of tables dumped.
        row_count: Number of INSERT statements emitted.
    """

    database: str
    generated_at: datetime
    text: str
    table_count: int = 0
    row_count: int = 0


@dataclass(frozen=True)
class Artifact:
    """A compressed single-entry archive holding one dump.

    Attributes:
        path: Location of the archive on disk.
        entry_name: Name of the single member inside the archive.
        size: Archive size in bytes.
    """

    path: Path
    entry_name: str
    size: int


@dataclass(frozen=True)
class DeliveryReceipt:
    """Result of delivering an artifact to a channel."""

    destination: str
    artifact_name: str
    size_bytes: int
    size_label: str
    message_id: Optional[str] = None


@dataclass(frozen=True)
class BackupOutcome:
    """Result of processing one target."""

    target: str
    success: bool
    error: Optional[str] = None


@dataclass
class BatchSummary:
    """Aggregate result of one run over all configured targets.

    Attributes:
        total: Number of configured targets.
        succeeded: Targets dumped, packaged and delivered.
        failed: Targets that failed at any stage.
        duration_seconds: Wall-clock duration of the run.
        outcomes: Per-target results in processing order.
    """

    total: int
    succeeded: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    outcomes: List[BackupOutcome] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def failed_targets(self) -> Tuple[str, ...]:
        return tuple(o.target for o in self.outcomes if not o.success)

    def record(self, outcome: BackupOutcome) -> None:
        """Add a per-target outcome to the counters."""

        self.outcomes.append(outcome)
        if outcome.success:
            self.succeeded += 1
        else:
            self.failed += 1

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "duration_seconds": round(self.duration_seconds, 2),
            "failed_targets": list(self.failed_targets),
        }
