"""
Consolidated exception system with error codes, context, and correlation support.

This module provides a unified exception hierarchy for the tenant access core,
with automatic logging and correlation ID tracking. Domain failures (denied
access, exhausted quotas, bad invitations, identity-provider failures) are
subclasses of BaseError so every layer can handle them uniformly.
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .enums import DenyReason, EntityType, IdentityErrorKind, ResourceKind

# Removed logger import to avoid circular dependency - calling code should handle logging

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONNECTION_ERROR = "1002"
    CONFIGURATION_ERROR = "1003"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    CONSTRAINT_VIOLATION = "2004"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"
    EXPIRED = "3004"

    # Business logic errors (4xxx)
    BUSINESS_RULE_VIOLATION = "4000"
    INVALID_STATE_TRANSITION = "4001"
    QUOTA_EXCEEDED = "4002"
    PERMISSION_DENIED = "4003"

    # External service errors (5xxx)
    EXTERNAL_API_ERROR = "5002"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Import logger here to avoid circular dependency at module load time
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if self.status_code >= 500:
            logger.error(
                f"Error {self.error_code.value}: {self.message}", extra=log_data, exc_info=self.cause
            )
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code.value}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code.value}: {self.message}", extra=log_data)

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        Args:
            include_cause: Include cause information (useful for debugging)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": {
                    k: v
                    for k, v in self.context.items()
                    if k not in ["cause", "error_id", "correlation_id"]
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Repository layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize repository error with database context."""
        super().__init__(message, error_code, status_code, cause, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        status_code: int = 500,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, status_code, cause, **context)


class ValidationError(BaseError):
    """Validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, 400, cause, **context)


class ExternalServiceError(BaseError):
    """External service integration errors."""

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_API_ERROR,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize external service error with service context."""
        context["service_name"] = service_name
        super().__init__(message, error_code, 502, cause, **context)


# ==================== ACCESS-CONTROL EXCEPTIONS ====================


class AuthorizationDenied(BaseError):
    """
    Raised when the authorization engine denies an action.

    Deliberately indistinguishable from "not found": the message and code are
    the ones a missing entity would produce, and the deny reason is kept as an
    attribute that never reaches to_dict().
    """

    def __init__(
        self,
        entity_type: EntityType,
        entity_id: Optional[str] = None,
        reason: Optional[DenyReason] = None,
        **kwargs,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        label = entity_type.value.replace("_", " ").capitalize()
        super().__init__(
            message=f"{label} not found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
            entity_type=entity_type.value,
            **kwargs,
        )


class QuotaExceeded(BaseError):
    """Raised when creating one more unit of a quota-bound resource is not permitted."""

    def __init__(self, resource_kind: ResourceKind, limit: int, tenant_id: str, **kwargs):
        self.resource_kind = resource_kind
        self.limit = limit
        super().__init__(
            message=f"{resource_kind.value.capitalize()} limit of {limit} reached for this plan",
            error_code=ErrorCode.QUOTA_EXCEEDED,
            status_code=403,
            resource_kind=resource_kind.value,
            limit=limit,
            tenant_id=tenant_id,
            **kwargs,
        )


class InvitationInvalid(BaseError):
    """Raised when an invitation token does not exist for the tenant (or was consumed)."""

    def __init__(self, message: str = "Invalid invitation token", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class InvitationExpired(BaseError):
    """Raised when redeeming an invitation past its expiry."""

    def __init__(self, message: str = "Invitation has expired", **kwargs):
        super().__init__(message=message, error_code=ErrorCode.EXPIRED, status_code=410, **kwargs)


class DuplicateMembership(BaseError):
    """Raised when a principal already has a membership in the tenant."""

    def __init__(self, tenant_id: str, user_id: str, cause: Optional[Exception] = None):
        super().__init__(
            message="User is already a member of this tenant",
            error_code=ErrorCode.DUPLICATE,
            status_code=409,
            cause=cause,
            tenant_id=tenant_id,
            user_id=user_id,
        )


class IdentityProviderError(ExternalServiceError):
    """Raised when the identity provider rejects or fails a call."""

    def __init__(
        self,
        kind: IdentityErrorKind,
        message: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        self.kind = kind
        super().__init__(
            message or f"Identity provider error: {kind.value}",
            service_name="identity_provider",
            cause=cause,
            kind=kind.value,
            **context,
        )


class InvalidTransition(BaseError):
    """Raised when a join-flow event is not legal in the current step."""

    def __init__(self, step: str, event: str):
        super().__init__(
            message=f"Event '{event}' is not valid in step '{step}'",
            error_code=ErrorCode.INVALID_STATE_TRANSITION,
            status_code=400,
            step=step,
            event=event,
        )


# Factory functions for common error patterns
def not_found(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> RepositoryError:
    """
    Factory for not found errors.

    Args:
        resource_type: Type of resource (e.g., 'PriceTier', 'Tenant')
        cause: Original exception if any
        **identifiers: Resource identifiers (e.g., tenant_id='123')

    Returns:
        Configured RepositoryError instance with 404 status
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{resource_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return RepositoryError(
        message,
        error_code=ErrorCode.NOT_FOUND,
        status_code=404,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


def duplicate(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> RepositoryError:
    """
    Factory for duplicate resource errors.

    Args:
        resource_type: Type of resource (e.g., 'Tenant')
        cause: Original exception if any
        **identifiers: Resource identifiers

    Returns:
        Configured RepositoryError instance with 409 status
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"Duplicate {resource_type}"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return RepositoryError(
        message,
        error_code=ErrorCode.DUPLICATE,
        status_code=409,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")
