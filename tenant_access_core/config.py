"""
Centralized configuration management for the tenant access core.

This module provides a unified configuration system with support for:
- Environment variables
- Feature flags
- Runtime configuration
- Validation using Pydantic
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_PRICE_TIER_NAME,
    DEFAULT_PROBE_PASSWORD,
    EnvironmentVariable,
    Limits,
    LogLevel,
)
from .enums import Role


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DATABASE_URL.value, "sqlite:///./tenant_access.db"
        ),
        description="Database connection string",
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")


class QueueConfig(BaseModel):
    """Queue configuration for the structured log sink."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )
    logs_queue_name: str = Field(default="logs-queue", description="Structured logs queue name")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        validate_default=True,
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )
    enable_json_logs: bool = Field(default=False, description="Enable JSON structured logging")

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class FeatureFlags(BaseModel):
    """Feature flags for controlling runtime behavior."""

    enable_logs_queue: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.LOGS_QUEUE_ENABLED.value, "false"),
        description="Ship structured logs to the Azure Storage logs queue",
    )
    enable_operation_context: bool = Field(
        default=True, description="Log ENTER/EXIT records for service operations"
    )
    enable_email_probe: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.EMAIL_PROBE_ENABLED.value, "true"),
        description="Classify sign-in errors to detect whether an email has an account",
    )


class QuotaConfig(BaseModel):
    """Price tier and quota configuration."""

    default_price_tier_name: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DEFAULT_PRICE_TIER.value, DEFAULT_PRICE_TIER_NAME
        ),
        description="Tier assigned to newly created tenants",
    )
    catalog_cache_ttl_seconds: int = Field(
        default=Limits.DEFAULT_CATALOG_CACHE_TTL_SECONDS,
        ge=0,
        description="How long price tier rows stay cached (0 disables caching)",
    )


class InvitationConfig(BaseModel):
    """Invitation issuance configuration."""

    expiry_days: int = Field(
        default_factory=lambda: int(
            os.getenv(
                EnvironmentVariable.INVITATION_EXPIRY_DAYS.value,
                str(Limits.DEFAULT_INVITATION_EXPIRY_DAYS),
            )
        ),
        ge=1,
        description="Days until an issued invitation expires",
    )
    token_bytes: int = Field(
        default=Limits.DEFAULT_INVITATION_TOKEN_BYTES, ge=16, description="Token entropy in bytes"
    )
    default_role: Role = Field(default=Role.MEMBER, description="Role granted without a token")


class JoinFlowConfig(BaseModel):
    """Tenant join flow configuration."""

    probe_password: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.JOIN_PROBE_PASSWORD.value, DEFAULT_PROBE_PASSWORD
        ),
        description="Known-invalid password used by the email-existence probe",
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.DEBUG.value, "false"),
        description="Debug mode",
    )

    # Sub-configurations
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    features: FeatureFlags = Field(default_factory=FeatureFlags, description="Feature flags")
    quota: QuotaConfig = Field(default_factory=QuotaConfig, description="Quota configuration")
    invitation: InvitationConfig = Field(
        default_factory=InvitationConfig, description="Invitation configuration"
    )
    join_flow: JoinFlowConfig = Field(
        default_factory=JoinFlowConfig, description="Join flow configuration"
    )

    # Custom configuration
    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom configuration values")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def get_custom(self, key: str, default: Any = None) -> Any:
        """Get a custom configuration value."""
        return self.custom.get(key, default)

    def set_custom(self, key: str, value: Any) -> None:
        """Set a custom configuration value."""
        self.custom[key] = value


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
