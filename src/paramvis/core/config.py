"""Configuration management for paramvis.

Uses Pydantic Settings for type-safe, environment-based configuration.
"""

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # App configuration
    app_name: str = Field("paramvis", alias="PARAMVIS_APP_NAME")
    environment: str = Field("development", alias="PARAMVIS_ENVIRONMENT")

    # Logging configuration
    log_level: str = Field("INFO", alias="PARAMVIS_LOG_LEVEL")
    log_format: str = Field("text", alias="PARAMVIS_LOG_FORMAT")  # text or json

    # Schema limits
    max_schema_depth: int = Field(32, alias="PARAMVIS_MAX_SCHEMA_DEPTH")
    max_query_depth: int = Field(16, alias="PARAMVIS_MAX_QUERY_DEPTH")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["text", "json"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("max_schema_depth", "max_query_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        """Depth limits must allow at least one level of nesting."""
        if v < 1:
            raise ValueError("Depth limits must be at least 1")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",  # Ignore extra environment variables instead of forbidding them
    )


def get_settings() -> Settings:
    """Build a settings instance from the current environment."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance - will be created when first accessed
settings = None


def get_settings_instance() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global settings  # noqa: PLW0603
    if settings is None:
        settings = get_settings()
    return settings


def reset_settings_instance() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global settings  # noqa: PLW0603
    settings = None
