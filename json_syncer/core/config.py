"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from the current working directory first, then from the project root
# config.py is at: json_syncer/core/config.py
_current_file = Path(__file__).resolve()
_project_root = _current_file.parent.parent.parent
ENV_FILE = Path.cwd() / ".env"
if not ENV_FILE.exists():
    ENV_FILE = _project_root / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """json-syncer settings"""

    # Application
    app_name: str = "json-syncer"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"json_syncer.services": "DEBUG"})'
    )
    log_format: str = Field(
        default="text",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/json_syncer.log",
        description="Path to log file (relative to the working directory)"
    )
    log_file_retention: int = Field(
        default=7,
        ge=1,
        description="Number of days to keep log files"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./json_syncer.db",
        description="SQLAlchemy database URL"
    )
    database_pool_size: int = Field(default=5, ge=1, description="Database pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow")

    # Import behaviour
    import_atomic: bool = Field(
        default=False,
        description="Wrap every import call in a single transaction instead of committing per entity"
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only 'json' and 'text' formats are supported"""
        if v.lower() not in ("json", "text"):
            raise ValueError(f"Unsupported log format: {v}")
        return v.lower()

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite"""
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_prefix="JSON_SYNCER_",
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
