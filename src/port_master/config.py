"""Configuration management for port-master."""

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    db_path: str = Field(
        default="~/.config/port-master/ports.db",
        description="SQLite database holding the port assignments",
    )
    max_allocation_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts made by the resolver when a concurrent process takes the same port",
    )
    busy_timeout: float = Field(
        default=5.0,
        ge=0.0,
        description="Seconds a connection waits for a locked database before failing",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    error_log_file: str | None = Field(
        default=None,
        description="Optional file receiving errors as JSON lines",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PORT_MASTER_",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        # Fall back to a .env next to the project root when none is in the cwd
        if "_env_file" not in kwargs and not os.path.exists(".env"):
            current_dir = os.path.dirname(os.path.abspath(__file__))
            # Go up: port_master/ -> src/ -> project root
            project_root = os.path.abspath(os.path.join(current_dir, "../.."))
            env_path = os.path.join(project_root, ".env")
            if os.path.exists(env_path):
                kwargs["_env_file"] = env_path
        super().__init__(**kwargs)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def resolved_db_path(self) -> str:
        """Database path with ``~`` and environment variables expanded."""
        return os.path.expandvars(os.path.expanduser(self.db_path))


def get_settings() -> Settings:
    """Get application settings, loading from environment."""
    return Settings()
