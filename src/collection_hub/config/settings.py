"""
Configuration management for collection_hub.

This module provides environment-based configuration using Pydantic BaseSettings,
allowing for flexible deployment across development, testing, and production
environments while maintaining secure credential management.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("CHUB_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are automatically loaded with the CHUB_ prefix.
    For example, CHUB_USERS_TABLE will override the users_table setting.

    Unprefixed fields (uppercase names):
    - ENVIRONMENT: Deployment environment (dev, staging, prod)
    - LOG_LEVEL: Logging level (uppercase)
    """

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Deployment environment",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    log_to_file: bool = Field(
        default=False, description="Also write logs to a daily rotating file"
    )
    log_file_dir: str = Field(default="logs", description="Directory for log files")

    # Schema layer behaviour
    users_table: str = Field(
        default="users",
        description="Table referenced by columns of the User type",
    )
    allow_destructive_changes: bool = Field(
        default=False,
        description=(
            "Allow column drops and storage-changing retypes when no explicit "
            "allow_destructive argument is passed"
        ),
    )
    schema_locking: bool = Field(
        default=False,
        description=(
            "Take a per-table advisory transaction lock before applying ALTER "
            "scripts so concurrent edits to one table run one after another"
        ),
    )

    # Database configuration
    database_host: str = Field(default="localhost", description="Database host")
    database_port: int = Field(default=5432, description="Database port")
    database_user: str = Field(default="postgres", description="Database user")
    database_password: str = Field(default="", description="Database password")
    database_db: str = Field(default="collection_hub", description="Database name")
    database_uri: Optional[str] = Field(
        default=None,
        description="Complete database URI",
        validation_alias=AliasChoices(
            "CHUB_DATABASE__URI", "CHUB_DATABASE_URI", "DATABASE_URL"
        ),
    )

    def get_database_connection_string(self) -> str:
        """Get PostgreSQL connection string.

        Priority order:
        1) database_uri (CHUB_DATABASE__URI, CHUB_DATABASE_URI or DATABASE_URL)
        2) Construct from individual CHUB_DATABASE_* components

        Automatically corrects 'postgres://' scheme to 'postgresql://' for
        SQLAlchemy compatibility.
        """
        if self.database_uri:
            final_uri = self.database_uri
        else:
            final_uri = (
                f"postgresql://{self.database_user}:{self.database_password}"
                f"@{self.database_host}:{self.database_port}/{self.database_db}"
            )

        # postgres:// is rejected by SQLAlchemy 1.4+
        if final_uri.startswith("postgres://"):
            final_uri = final_uri.replace("postgres://", "postgresql://", 1)

        return final_uri

    @model_validator(mode="after")
    def validate_production_database_url(self) -> "Settings":
        """Validate that production environment uses PostgreSQL.

        Raises:
            ValueError: If ENVIRONMENT is 'prod' and database URL is not PostgreSQL
        """
        db_url = self.get_database_connection_string()

        if self.ENVIRONMENT == "prod" and not db_url.startswith("postgresql"):
            db_url_preview = db_url[:20]
            raise ValueError(
                "Production environment requires PostgreSQL database. "
                f"Database URL must start with 'postgresql://', "
                f"got: {db_url_preview}..."
            )

        return self

    model_config = SettingsConfigDict(
        env_prefix="CHUB_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused across
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
