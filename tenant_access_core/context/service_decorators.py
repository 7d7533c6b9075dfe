"""
Service layer decorators for reducing code duplication.
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import BaseError, ErrorCode, ServiceError

F = TypeVar("F", bound=Callable[..., Any])


def handle_repository_errors(operation_name: Optional[str] = None):
    """
    Convert raw database errors raised by a service method into ServiceError.

    Domain errors (BaseError subclasses) pass through untouched.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            op_name = operation_name or func.__name__
            try:
                return func(self, *args, **kwargs)
            except BaseError:
                raise
            except SQLAlchemyError as e:
                raise ServiceError(
                    f"Database error in {type(self).__name__}.{op_name}: {str(e)}",
                    error_code=ErrorCode.DATABASE_ERROR,
                    operation=op_name,
                    cause=e,
                ) from e

        return cast(F, wrapper)

    return decorator


def transactional():
    """
    Run a service method inside the service's transaction().

    Commits on success and rolls back on any exception when the service owns
    its session; inside a caller-provided session the method runs in a
    savepoint instead.

    Usage:
        @transactional()
        @handle_repository_errors("create_group")
        def create_group(self, ...):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            with self.transaction():
                return func(self, *args, **kwargs)

        return cast(F, wrapper)

    return decorator
