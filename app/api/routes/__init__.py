"""Route modules for the API."""

from . import backup

__all__ = [
    "backup",
]
