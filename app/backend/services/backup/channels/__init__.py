"""Reporting and transfer channels."""

from backend.services.backup.channels.base import COLOR_GREEN, COLOR_RED, COLOR_YELLOW, Embed, EmbedField, ReportChannel

__all__ = ["COLOR_GREEN", "COLOR_RED", "COLOR_YELLOW", "Embed", "EmbedField", "ReportChannel"]
