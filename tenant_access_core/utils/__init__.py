"""Utility modules for the tenant access core."""

from .crud_helpers import (
    add_record,
    count_records,
    delete_record,
    get_record,
    get_record_by_id,
    list_records,
    update_fields,
)
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging utilities
    "ContextAwareLogger",
    "AzureQueueHandler",
    "configure_logging",
    "get_logger",
    # Query helpers
    "add_record",
    "count_records",
    "delete_record",
    "get_record",
    "get_record_by_id",
    "list_records",
    "update_fields",
]
