"""
Configuration for appdb.

Uses pydantic-settings for environment variable loading. Every setting has
a default, so the library works without any environment.

Environment variables (prefix APPDB_):
    APPDB_DIR_MODE          Mode for created parent directories (default 0o700)
    APPDB_BUSY_TIMEOUT_MS   SQLite busy timeout in milliseconds
    APPDB_FOREIGN_KEYS      Enable foreign key enforcement on every connection
    APPDB_LOG_LEVEL         Logging level used by the CLI
    APPDB_LOG_FORMAT        Log format used by the CLI (text, json)
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppDbSettings(BaseSettings):
    """appdb configuration loaded from environment."""

    # Filesystem
    dir_mode: int = Field(default=0o700, description="Mode for created parent directories")

    # SQLite connection
    busy_timeout_ms: int = Field(default=5000, description="SQLite busy timeout in milliseconds")
    foreign_keys: bool = Field(
        default=True, description="Run PRAGMA foreign_keys = ON on every opened connection"
    )

    # Logging (CLI only; the library never configures handlers)
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["text", "json"] = Field(default="text", description="Log format")

    model_config = {"env_prefix": "APPDB_"}

    @field_validator("dir_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: object) -> object:
        # Bare digits are octal, as with chmod; "0o"/"0x" prefixes are honoured
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return int(text, 8)
            return int(text, 0)
        return value

    @property
    def busy_timeout_seconds(self) -> float:
        """Busy timeout as accepted by sqlite3.connect()."""
        return self.busy_timeout_ms / 1000.0
