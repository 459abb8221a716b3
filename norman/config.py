"""Configuration management for norman."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.norman/.env
    3. Package directory (where this file is located)
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".norman" / ".env"
    if user_env.exists():
        return str(user_env)

    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Report output
    default_output_dir: str = Field(
        default="./norman/",
        description="Directory reports are written to"
    )
    default_report_types: str = Field(
        default="all",
        description="Comma-separated report keys to generate, or 'all'"
    )

    # Database connections
    connect_timeout: int = Field(
        default=10,
        description="Seconds to wait when opening a database connection"
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the norman loggers"
    )

    # Run history logging
    run_logging_enabled: bool = Field(
        default=True,
        description="Record mapping runs in the local run history database"
    )
    run_logging_db_path: Optional[str] = Field(
        default=None,
        description="Path to the run history database (default: ~/.norman/runs.db)"
    )
    run_logging_retention_days: int = Field(
        default=30,
        description="Number of days to retain run history entries"
    )

    class Config:
        env_prefix = "NORMAN_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
