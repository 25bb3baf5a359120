"""Configured backup targets.

The list is ordered: targets are backed up in ascending ``position``.
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from models.sql.base import Base


class BackupTargetEntry(Base):
    """One database in the configured backup list.

    Attributes:
        position (int): Zero-based position in the list (primary key).
        name (str): Database name. Duplicates are allowed.
        updated_at (datetime): When the list was last saved.
    """

    __tablename__ = "backup_targets"

    position = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
