"""Application settings for the database backup service.

Values are read from the environment (and an optional ``.env`` file). Secrets
can alternatively be provided through ``*_FILE`` variables pointing at a file
(Docker/Swarm secrets); the plain variable always wins when both are set.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret_file(path: str) -> str:
    """Read a secret value from a file.

    Args:
        path: File path (may be empty).

    Returns:
        str: Stripped file content, or an empty string when unavailable.
    """

    if not path:
        return ""

    try:
        return Path(path).read_text(encoding="utf-8").strip()
    except OSError:
        return ""


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    IMAGE_TAG: str = "local"
    DEBUG: bool = False

    # MySQL server holding the databases to back up
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""
    MYSQL_PASSWORD_FILE: str = ""
    MYSQL_CONNECT_TIMEOUT: int = 10

    # Reporting / transfer channels
    CHANNEL_BACKEND: str = "discord"
    DISCORD_TOKEN: str = ""
    DISCORD_TOKEN_FILE: str = ""
    DISCORD_API_URL: str = "https://discord.com/api/v10"
    DISCORD_TIMEOUT: float = 30.0
    NOTIFY_CHANNEL_ID: str = ""
    BACKUP_CHANNEL_ID: str = ""
    LOCAL_CHANNEL_DIR: str = "data/channels"

    # Configured backup targets
    TARGET_STORE: str = "json"
    TARGETS_FILE: str = "data/db_list.json"
    TARGETS_DATABASE_URL: str = "sqlite:///data/targets.db"

    # Runs
    WORK_DIR: str = str(Path(tempfile.gettempdir()) / "db_backup")
    CRON_SCHEDULE: str = "0 */3 * * *"
    SCHEDULER_TIMEZONE: str = "UTC"
    SCHEDULER_ENABLED: bool = False
    RUN_LOCK_TIMEOUT: int = 7200

    # Owner identity for configuration changes and manual runs
    ADMIN_API_KEY: str = ""
    ADMIN_API_KEY_FILE: str = ""

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_FILENAME: str = "db-backup.log"

    def get_mysql_password(self) -> str:
        """Return the MySQL password from the variable or its secret file."""

        return self.MYSQL_PASSWORD or _read_secret_file(self.MYSQL_PASSWORD_FILE)

    def get_discord_token(self) -> str:
        """Return the Discord bot token from the variable or its secret file."""

        return self.DISCORD_TOKEN or _read_secret_file(self.DISCORD_TOKEN_FILE)

    def get_admin_api_key(self) -> Optional[str]:
        """Return the owner API key, or None when not configured."""

        return (self.ADMIN_API_KEY or _read_secret_file(self.ADMIN_API_KEY_FILE)) or None


settings = Settings()
