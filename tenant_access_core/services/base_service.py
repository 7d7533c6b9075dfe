"""
Base service implementation with common functionality for all services.

Services own a SQLAlchemy session (created from the global database manager)
or share one handed in by the caller. Every write runs inside transaction():
on an owned session that commits or rolls back; on a shared session it runs
in a SAVEPOINT so a failure undoes only this service's work and leaves the
caller's transaction usable.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.orm import Session

from ..db.db_config import get_db_manager
from ..utils.logger import ContextAwareLogger, get_logger


class SessionManagedService:
    """
    Service that owns or shares a database session.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        logger: Optional[logging.Logger | ContextAwareLogger] = None,
    ):
        """
        Initialize service with its own session.

        Args:
            session: Optional existing session (for testing or coordination)
            logger: Optional logger instance
        """
        if session is not None:
            self.session = session
            self._owns_session = False
        else:
            self.session = self._create_session()
            self._owns_session = True

        self.logger = logger or get_logger()
        self._in_transaction = False

    def _create_session(self) -> Session:
        """Create a new database session from the global database manager."""
        return get_db_manager().session_factory()

    @contextmanager
    def transaction(self):
        """
        Context manager for transactional operations.

        Re-entrant: nested calls on the same service join the outer one.

        Usage:
            with service.transaction():
                service.create_something()
                service.update_something()
                # Auto-commits on success, rollback on exception
        """
        if self._in_transaction:
            yield self.session
            return

        self._in_transaction = True
        try:
            if self._owns_session:
                try:
                    yield self.session
                    self.session.commit()
                except Exception:
                    self.session.rollback()
                    raise
            else:
                with self.session.begin_nested():
                    yield self.session
        finally:
            self._in_transaction = False

    def _share_session(self, service_class, **kwargs):
        """Build a collaborating service that works inside this service's session."""
        return service_class(session=self.session, logger=self.logger, **kwargs)

    def commit(self):
        """Manually commit the current transaction."""
        if self._owns_session:
            self.session.commit()

    def rollback(self):
        """Manually rollback the current transaction."""
        if self._owns_session:
            self.session.rollback()

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        """Support for 'with' statement."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Auto-close session on exit."""
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()
