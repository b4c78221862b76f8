"""
Configuration module for the User Management API.

This module provides environment variable configuration and settings management
using Pydantic Settings for type-safe configuration.
"""
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UserApiSettings(BaseSettings):
    """
    Configuration settings for the User Management API.

    All settings are loaded from environment variables with validation.
    The defaults reproduce the fixed constants the service was first
    deployed with, so an empty environment keeps wire behavior unchanged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    jwt_secret: str = Field(
        "super_secret_jwt_key_12345_67890_abcde",
        description="Shared secret used to sign and verify HS256 tokens (JWT_SECRET)"
    )

    jwt_issuer: str = Field(
        "UserManagementApi",
        description="Issuer and audience identifier embedded in tokens (JWT_ISSUER)"
    )

    token_lifetime_minutes: int = Field(
        60,
        gt=0,
        description="Minutes a freshly issued token stays valid (TOKEN_LIFETIME_MINUTES)"
    )

    log_level: str = Field(
        "INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    host: str = Field("0.0.0.0", description="Bind address when run with uvicorn")
    port: int = Field(8080, description="Bind port when run with uvicorn")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator("jwt_secret", "jwt_issuer")
    @classmethod
    def validate_not_blank(cls, v, info):
        """Signing material cannot be empty."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()


# Global settings instance
settings: Optional[UserApiSettings] = None


def get_settings() -> UserApiSettings:
    """
    Get the global settings instance, creating it if necessary.

    Returns:
        UserApiSettings: The global settings instance

    Raises:
        ValueError: If environment variables are present but invalid
    """
    global settings
    if settings is None:
        settings = UserApiSettings()
    return settings


def reload_settings() -> UserApiSettings:
    """
    Force reload settings from environment variables.

    This is useful for testing or when environment variables change.
    """
    global settings
    settings = UserApiSettings()
    return settings
