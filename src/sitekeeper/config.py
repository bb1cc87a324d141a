"""Configuration management for SiteKeeper."""

import os
from pathlib import Path


class Config:
    """Configuration settings for SiteKeeper."""

    DEFAULT_DB_PATH = "~/.sitekeeper/entries.json"
    DB_PATH_ENV = "SITEKEEPER_DB_PATH"
    DEFAULT_LOG_PATH = "~/.sitekeeper/sitekeeper.log"
    LOG_PATH_ENV = "SITEKEEPER_LOG_PATH"
    LOG_LEVEL_ENV = "SITEKEEPER_LOG_LEVEL"
    LOG_FORMAT_ENV = "SITEKEEPER_LOG_FORMAT"

    # Backup files
    EXPORT_PREFIX = "passwords-backup"

    # Service bookkeeping
    MAX_OPERATION_HISTORY = 50

    # Display constants
    PASSWORD_MASK = "*"
    MAX_WEBSITE_DISPLAY_LENGTH = 40

    def __init__(self):
        """Initialize configuration with environment variable support."""
        self.db_path = self._get_path(self.DB_PATH_ENV, self.DEFAULT_DB_PATH)
        self.log_path = self._get_path(self.LOG_PATH_ENV, self.DEFAULT_LOG_PATH)
        self.log_level = os.getenv(self.LOG_LEVEL_ENV, "INFO").upper()
        self.log_format = os.getenv(self.LOG_FORMAT_ENV, "console").lower()

    @staticmethod
    def _get_path(env_name: str, default: str) -> str:
        """Get a path from environment or use default."""
        env_path = os.getenv(env_name)
        if env_path:
            return os.path.expanduser(env_path)
        return os.path.expanduser(default)

    def get_data_dir(self) -> Path:
        """Get the directory containing the entry store."""
        return Path(self.db_path).parent

    def ensure_data_dir(self) -> None:
        """Ensure the data directory exists."""
        self.get_data_dir().mkdir(parents=True, exist_ok=True)


config = Config()
