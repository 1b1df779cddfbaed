"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="integration-probe", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port", ge=1, le=65535)

    # ========== New Relic Log Shipping ==========
    new_relic_license_key: Optional[str] = Field(
        default=None,
        description="New Relic license key; log shipping is disabled when unset"
    )
    new_relic_log_endpoint: str = Field(
        default="https://log-api.newrelic.com/log/v1",
        description="New Relic Log API endpoint (use log-api.eu.newrelic.com for EU accounts)"
    )
    new_relic_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for New Relic Log API calls",
        ge=0.1,
        le=30
    )

    # ========== Snowflake ==========
    snowflake_account: str = Field(default="test-account", description="Snowflake account identifier")
    snowflake_username: str = Field(default="test-user", description="Snowflake user")
    snowflake_password: str = Field(default="test-password", description="Snowflake password")
    snowflake_warehouse: str = Field(default="COMPUTE_WH", description="Snowflake virtual warehouse")
    snowflake_database: str = Field(default="TEST_DB", description="Snowflake database")
    snowflake_schema: str = Field(default="PUBLIC", description="Snowflake schema")
    snowflake_login_timeout: int = Field(
        default=30,
        description="Seconds to wait for Snowflake login before failing",
        ge=1
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a stdlib logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def log_shipping_enabled(self) -> bool:
        return bool(self.new_relic_license_key)


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
