"""Persistence of the configured backup target list.

The orchestrator only sees the `TargetStore` interface; the JSON file store
is the default, the SQL store keeps the list in any SQLAlchemy-supported
database.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session

from models.sql.backup_target import BackupTargetEntry
from models.sql.base import Base


logger = logging.getLogger(__name__)


def parse_target_list(raw: str) -> List[str]:
    """Parse a comma-separated target list.

    Args:
        raw: Input such as ``"db1, db2,,db3"``.

    Returns:
        List[str]: Non-empty, stripped names in input order.
    """

    return [part.strip() for part in str(raw or "").split(",") if part.strip()]


def _normalize(targets: Iterable[str]) -> List[str]:
    return [str(t).strip() for t in targets if str(t).strip()]


class TargetStore(ABC):
    """Durable ordered list of databases to back up."""

    @abstractmethod
    def load(self) -> List[str]:
        """Return the configured targets; an empty or missing store yields []."""

    @abstractmethod
    def save(self, targets: List[str]) -> List[str]:
        """Replace the configured targets.

        Args:
            targets: New ordered list.

        Returns:
            List[str]: The list as stored.
        """


class JsonTargetStore(TargetStore):
    """Targets kept as a JSON array in a file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> List[str]:
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Target list %s is unreadable; treating it as empty", self.path)
            return []

        if not isinstance(data, list):
            logger.warning("Target list %s is not a JSON array; treating it as empty", self.path)
            return []
        return _normalize(data)

    def save(self, targets: List[str]) -> List[str]:
        names = _normalize(targets)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(names, handle, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Saved %s backup target(s) to %s", len(names), self.path)
        return names


class SqlTargetStore(TargetStore):
    """Targets kept in the ``backup_targets`` table."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        if database_url.startswith("sqlite:///"):
            db_path = database_url[len("sqlite:///"):]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)

    def load(self) -> List[str]:
        with Session(self.engine) as session:
            result = session.execute(select(BackupTargetEntry.name).order_by(BackupTargetEntry.position.asc()))
            return _normalize(result.scalars().all())

    def save(self, targets: List[str]) -> List[str]:
        names = _normalize(targets)
        with Session(self.engine) as session, session.begin():
            session.execute(delete(BackupTargetEntry))
            session.add_all(BackupTargetEntry(position=i, name=name) for i, name in enumerate(names))

        logger.info("Saved %s backup target(s) to %s", len(names), self.engine.url.render_as_string(hide_password=True))
        return names
