"""
Generic query helpers shared by the services.

These helpers never commit: every service operation runs inside a
transaction owned by the service (see SessionManagedService.transaction),
so writes here only add/flush and the caller decides commit or rollback.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import ErrorCode, RepositoryError
from .logger import get_logger

T = TypeVar("T")


def _apply_filters(stmt, model_class, filters: Optional[Dict[str, Any]], tenant_id: Optional[str]):
    if tenant_id and hasattr(model_class, "tenant_id"):
        stmt = stmt.where(model_class.tenant_id == tenant_id)
    for key, value in (filters or {}).items():
        if hasattr(model_class, key) and value is not None:
            stmt = stmt.where(getattr(model_class, key) == value)
    return stmt


def add_record(session: Session, record: T) -> T:
    """
    Add a record and flush it so database constraints fire immediately.

    Raises:
        RepositoryError: If the flush fails for a reason other than an integrity
            error (integrity errors propagate unchanged so callers can map them)
    """
    try:
        session.add(record)
        session.flush()
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        raise RepositoryError(
            f"Failed to create {type(record).__name__}: {str(e)}",
            error_code=ErrorCode.DATABASE_ERROR,
            cause=e,
        ) from e

    get_logger().debug(
        f"Created {type(record).__name__}",
        extra={"model": type(record).__name__, "record_id": getattr(record, "id", None)},
    )
    return record


def get_record(
    session: Session, model_class: Type[T], filters: Dict[str, Any], tenant_id: Optional[str] = None
) -> Optional[T]:
    """
    Get the first record matching the filters.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        filters: Filter conditions (None values are ignored)
        tenant_id: Optional tenant ID filter

    Returns:
        Record instance or None
    """
    stmt = _apply_filters(select(model_class), model_class, filters, tenant_id)
    return session.scalars(stmt.limit(1)).first()


def get_record_by_id(
    session: Session, model_class: Type[T], record_id: str, tenant_id: Optional[str] = None
) -> Optional[T]:
    """Get a record by primary key, optionally scoped to a tenant."""
    if not record_id:
        return None
    return get_record(session, model_class, {"id": record_id}, tenant_id)


def list_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    tenant_id: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[T]:
    """
    List records matching the filters.

    Ordering defaults to newest first when the model has created_at.
    """
    stmt = _apply_filters(select(model_class), model_class, filters, tenant_id)

    if order_by and hasattr(model_class, order_by):
        stmt = stmt.order_by(getattr(model_class, order_by))
    elif hasattr(model_class, "created_at"):
        stmt = stmt.order_by(model_class.created_at.desc())  # type: ignore[attr-defined]

    if offset:
        stmt = stmt.offset(offset)
    if limit:
        stmt = stmt.limit(limit)

    return list(session.scalars(stmt).all())


def count_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    tenant_id: Optional[str] = None,
) -> int:
    """Count records matching the filters."""
    stmt = _apply_filters(select(func.count()).select_from(model_class), model_class, filters, tenant_id)
    return int(session.scalar(stmt) or 0)


def update_fields(record: T, data: Dict[str, Any]) -> T:
    """Set every non-None value in data that names an attribute of record."""
    for key, value in data.items():
        if value is not None and hasattr(record, key):
            setattr(record, key, value)
    return record


def delete_record(session: Session, record: Any) -> None:
    """Delete a loaded record and flush."""
    session.delete(record)
    session.flush()
    get_logger().debug(
        f"Deleted {type(record).__name__}",
        extra={"model": type(record).__name__, "record_id": getattr(record, "id", None)},
    )
