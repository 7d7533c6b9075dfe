"""
Tenant and principal context management.

Thread-local storage for the tenant and principal an operation runs for, so
log records and errors carry them without threading them through every call.
The context is informational only: authorization decisions never read it.
"""

import threading
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Optional, Union

from ..exceptions import ErrorCode, ValidationError
from ..utils.logger import get_logger


class TenantContext:
    """
    Manages tenant and principal context using thread-local storage.
    """

    _thread_local = threading.local()

    @classmethod
    def set_current_tenant(cls, tenant_id: str) -> None:
        """
        Set the current tenant ID for the execution context.

        Raises:
            ValidationError: If tenant_id is empty or invalid
        """
        if not tenant_id or not isinstance(tenant_id, str) or not tenant_id.strip():
            raise ValidationError(
                "tenant_id must be a non-empty string",
                error_code=ErrorCode.MISSING_REQUIRED,
                field="tenant_id",
                value=tenant_id,
            )

        cls._thread_local.tenant_id = tenant_id.strip()
        get_logger().debug(f"Current tenant set to: {tenant_id}")

    @classmethod
    def get_current_tenant_id(cls) -> Optional[str]:
        return getattr(cls._thread_local, "tenant_id", None)

    @classmethod
    def clear_current_tenant(cls) -> None:
        if hasattr(cls._thread_local, "tenant_id"):
            delattr(cls._thread_local, "tenant_id")

    @classmethod
    def set_current_user(cls, user_id: Optional[str]) -> None:
        """Record the principal acting in this thread (None for anonymous)."""
        cls._thread_local.user_id = user_id

    @classmethod
    def get_current_user_id(cls) -> Optional[str]:
        return getattr(cls._thread_local, "user_id", None)

    @classmethod
    def clear_current_user(cls) -> None:
        if hasattr(cls._thread_local, "user_id"):
            delattr(cls._thread_local, "user_id")


@contextmanager
def tenant_context(tenant_id: str, user_id: Optional[str] = None) -> Generator[None, None, None]:
    """
    Context manager for tenant operations.

    Sets the current tenant (and optionally the principal) for the duration of
    the context and restores the previous values afterward.
    """
    previous_tenant = TenantContext.get_current_tenant_id()
    previous_user = TenantContext.get_current_user_id()
    TenantContext.set_current_tenant(tenant_id)
    if user_id is not None:
        TenantContext.set_current_user(user_id)
    try:
        yield
    finally:
        if previous_tenant:
            TenantContext.set_current_tenant(previous_tenant)
        else:
            TenantContext.clear_current_tenant()
        if user_id is not None:
            if previous_user:
                TenantContext.set_current_user(previous_user)
            else:
                TenantContext.clear_current_user()


def tenant_aware(tenant_id: Union[Optional[str], Callable] = None):
    """
    Parameterized decorator to make a function tenant-aware.

    Uses the tenant_id given to the decorator, else a tenant_id keyword
    argument of the call, else the one already in context.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            effective_tenant_id = (
                tenant_id or kwargs.get("tenant_id") or TenantContext.get_current_tenant_id()
            )

            if effective_tenant_id and isinstance(effective_tenant_id, str):
                with tenant_context(effective_tenant_id):
                    return func(*args, **kwargs)
            raise ValidationError(
                "No tenant ID provided for tenant-aware function",
                error_code=ErrorCode.MISSING_REQUIRED,
                field="tenant_id",
            )

        return wrapper

    # Handle usage as @tenant_aware (without args)
    if callable(tenant_id):
        func = tenant_id
        tenant_id = None
        return decorator(func)

    return decorator
