"""
Tenant events.

Any member may create an event (within the tier's event limit); the creator
or an owner may change or delete it. Public events are readable by anyone,
including anonymous principals; private events only by members.
"""

import datetime as dt
from typing import List, Optional

from sqlalchemy import select

from ..authorization.engine import EntityRef, Principal, decide
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_content_models import Event
from ..enums import Action, EntityType, EventVisibility, ResourceKind
from ..exceptions import ErrorCode, ValidationError
from ..schemas.content_schema import EventCreate, EventRead, EventUpdate
from ..utils.crud_helpers import delete_record, update_fields
from .access import authorize, load_access_facts, load_and_authorize
from .base_service import SessionManagedService
from .quota_service import QuotaService


class EventService(SessionManagedService):
    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.quota = self._share_session(QuotaService)

    @operation()
    @transactional()
    @handle_repository_errors("create_event")
    def create_event(self, principal: Principal, tenant_id: str, data: EventCreate) -> EventRead:
        """
        Create an event as principal.

        Raises:
            AuthorizationDenied: If the principal is not a member
            QuotaExceeded: If the tenant is at its event limit
        """
        authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.EVENT,
            tenant_id,
            EntityRef(tenant_id=tenant_id, created_by=principal.id),
        )
        event = self.quota.insert_within_quota(
            tenant_id,
            ResourceKind.EVENT,
            Event(tenant_id=tenant_id, created_by=principal.id, **data.model_dump()),
        )
        return EventRead.model_validate(event)

    @operation()
    @transactional()
    def get_event(self, principal: Principal, tenant_id: str, event_id: str) -> EventRead:
        event = load_and_authorize(
            self.session, principal, Action.READ, Event, EntityType.EVENT, event_id, tenant_id
        )
        return EventRead.model_validate(event)

    @operation()
    @transactional()
    def list_events(
        self,
        principal: Principal,
        tenant_id: str,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
    ) -> List[EventRead]:
        """
        Events of a tenant ordered by date, filtered to what principal may read.

        Members see every event; anyone else sees only public ones.
        """
        facts = load_access_facts(self.session, principal, tenant_id)
        sees_private = decide(
            principal,
            Action.READ,
            EntityType.EVENT,
            EntityRef(tenant_id=tenant_id, visibility=EventVisibility.PRIVATE),
            tenant_id,
            facts,
        ).allowed

        stmt = select(Event).where(Event.tenant_id == tenant_id)
        if not sees_private:
            stmt = stmt.where(Event.visibility == EventVisibility.PUBLIC)
        if date_from is not None:
            stmt = stmt.where(Event.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Event.date <= date_to)
        stmt = stmt.order_by(Event.date, Event.start_time)

        return [EventRead.model_validate(event) for event in self.session.scalars(stmt)]

    @operation()
    @transactional()
    @handle_repository_errors("update_event")
    def update_event(
        self, principal: Principal, tenant_id: str, event_id: str, data: EventUpdate
    ) -> EventRead:
        """Update an event (its creator or an owner)."""
        event = load_and_authorize(
            self.session, principal, Action.UPDATE, Event, EntityType.EVENT, event_id, tenant_id
        )
        update_fields(event, data.model_dump(exclude_unset=True))
        if (
            event.start_time is not None
            and event.end_time is not None
            and event.end_time <= event.start_time
        ):
            raise ValidationError(
                "end_time must be after start_time",
                field="end_time",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
            )
        self.session.flush()
        return EventRead.model_validate(event)

    @operation()
    @transactional()
    def delete_event(self, principal: Principal, tenant_id: str, event_id: str) -> None:
        """Delete an event (its creator or an owner)."""
        event = load_and_authorize(
            self.session, principal, Action.DELETE, Event, EntityType.EVENT, event_id, tenant_id
        )
        delete_record(self.session, event)
