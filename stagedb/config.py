"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from STAGEDB_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STAGEDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dispatcher
    max_iterations: int = 1000
    trace_level: Literal["none", "minimal", "detailed"] = "minimal"

    # Errors: full decline history vs a one-line message for unrecognized input
    detailed_errors: bool = True

    # Persistence
    data_dir: Path = Path(".")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["json", "console"] = "console"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
