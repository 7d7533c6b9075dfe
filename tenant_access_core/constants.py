"""
Constants for the tenant access core.

This module centralizes the magic strings and numbers used throughout
the package to ensure consistency and maintainability.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    DATABASE_URL = "DATABASE_URL"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    DEBUG = "DEBUG"
    LOGS_QUEUE_ENABLED = "LOGS_QUEUE_ENABLED"
    EMAIL_PROBE_ENABLED = "EMAIL_PROBE_ENABLED"
    DEFAULT_PRICE_TIER = "DEFAULT_PRICE_TIER"
    INVITATION_EXPIRY_DAYS = "INVITATION_EXPIRY_DAYS"
    JOIN_PROBE_PASSWORD = "JOIN_PROBE_PASSWORD"



class Limits:
    """System limits and defaults."""

    DEFAULT_CATALOG_CACHE_TTL_SECONDS = 300
    MAX_CACHED_TIERS = 100
    DEFAULT_INVITATION_EXPIRY_DAYS = 7
    DEFAULT_INVITATION_TOKEN_BYTES = 32
    LOG_QUEUE_BATCH_SIZE = 10


# Known-invalid password used by the email-existence probe
DEFAULT_PROBE_PASSWORD = "fake-password-to-check-existence"

DEFAULT_PRICE_TIER_NAME = "Free"
