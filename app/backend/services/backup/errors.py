"""Exception types raised by the backup engine.

Only configuration-level errors (`ConfigurationError`, `RunInProgressError`)
leave the orchestrator. Everything raised while processing a single target
is caught at the target-loop boundary and counted as a failure.
"""

from __future__ import annotations


class BackupError(RuntimeError):
    """Base class for backup engine errors."""


class ConfigurationError(BackupError):
    """Raised when the run configuration is invalid."""


class EmptyConfigurationError(ConfigurationError):
    """Raised when no backup targets are configured."""

    def __init__(self, message: str = "No databases configured for backup. Set the target list first.") -> None:
        super().__init__(message)


class RunInProgressError(BackupError):
    """Raised when another backup run currently holds the run lock."""


class DumpError(BackupError):
    """Base class for errors while dumping a database."""

    def __init__(self, database: str, message: str) -> None:
        super().__init__(f"{database}: {message}")
        self.database = database


class DumpConnectionError(DumpError):
    """Raised when the database server cannot be reached or rejects the login."""


class QueryError(DumpError):
    """Raised when a query fails while the dump is being produced."""


class PackagingError(BackupError):
    """Raised when the dump cannot be written or compressed."""


class ChannelError(BackupError):
    """Raised when a reporting/transfer channel rejects or fails a request."""


class DeliveryError(BackupError):
    """Raised when an artifact cannot be delivered to its destination."""


class DestinationUnsetError(DeliveryError):
    """Raised when no destination channel is configured for artifacts."""

    def __init__(self, message: str = "Backup channel not set") -> None:
        super().__init__(message)
