"""Schemas for the backup command endpoints."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from backend.services.backup.target_store import parse_target_list


class TargetsUpdateRequest(BaseModel):
    """Request to replace the configured target list."""

    targets: Union[str, List[str]] = Field(
        ...,
        description="Comma-separated database names (\"db1,db2\") or a list of names",
    )

    @field_validator("targets")
    @classmethod
    def normalize_targets(cls, value: Union[str, List[str]]) -> List[str]:
        if isinstance(value, str):
            names = parse_target_list(value)
        else:
            names = [str(v).strip() for v in value if str(v).strip()]
        if not names:
            raise ValueError("At least one database name is required, e.g. \"db1,db2\"")
        return names


class TargetsResponse(BaseModel):
    """Configured backup targets."""

    targets: List[str] = Field(default_factory=list, description="Database names in backup order")


class BackupRunResponse(BaseModel):
    """Acknowledgement of a manual backup run."""

    success: bool = Field(True, description="Whether the run was accepted")
    message: str = Field(..., description="Human readable status")
    targets: List[str] = Field(default_factory=list, description="Databases that will be backed up")


class BackupStatusResponse(BaseModel):
    """Whether a backup run is currently in progress."""

    running: bool = Field(..., description="True when a run holds the run lock")
    operation: Optional[str] = Field(None, description="Operation holding the lock")
