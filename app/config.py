"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from domain.enums import TagRanking


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Data layer settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="TakeEatEasy", description="Application name")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )

    # Store settings - SQLite
    store_dir: str = Field(
        default="stores",
        description="Directory holding one SQLite file per store container",
    )
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL overriding the container file (e.g. sqlite:///:memory:)",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")

    # Query settings
    popular_tags_ranking: TagRanking = Field(
        default=TagRanking.LENGTH, description="Ranking key for popular tags"
    )
    popular_tags_default_amount: int = Field(
        default=10, ge=0, description="Popular tags returned when no amount is given"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("popular_tags_ranking", mode="before")
    @classmethod
    def validate_ranking(cls, v):
        if isinstance(v, str):
            return TagRanking(v.lower())
        return v


# Global settings instance
settings = Settings()
