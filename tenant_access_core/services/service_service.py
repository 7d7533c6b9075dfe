"""
Services and their sub-resources.

Services, their admins and their linked groups are managed by tenant owners.
Notes, roles, service events and event owners may also be managed by the
admins registered for that specific service.
"""

from typing import Any, Dict, List, Type

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from ..authorization.engine import EntityRef, Principal
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_content_models import Group
from ..db.db_service_models import (
    Service,
    ServiceAdmin,
    ServiceEvent,
    ServiceEventOwner,
    ServiceGroup,
    ServiceNote,
    ServiceRole,
)
from ..enums import Action, DenyReason, EntityType
from ..exceptions import AuthorizationDenied, ErrorCode, ValidationError, duplicate
from ..schemas.service_schema import (
    ServiceAdminRead,
    ServiceCreate,
    ServiceEventCreate,
    ServiceEventOwnerCreate,
    ServiceEventOwnerRead,
    ServiceEventRead,
    ServiceEventUpdate,
    ServiceGroupRead,
    ServiceNoteCreate,
    ServiceNoteRead,
    ServiceNoteUpdate,
    ServiceRead,
    ServiceRoleCreate,
    ServiceRoleRead,
    ServiceRoleUpdate,
    ServiceUpdate,
)
from ..utils.crud_helpers import add_record, delete_record, get_record, list_records, update_fields
from .access import authorize, get_role, load_and_authorize, load_scoped
from .base_service import SessionManagedService


class ServiceService(SessionManagedService):
    """
    Manages services, service admins, service groups and the per-service
    notes, roles, events and event owners.
    """

    # ==================== SERVICES ====================

    @operation()
    @transactional()
    @handle_repository_errors("create_service")
    def create_service(
        self, principal: Principal, tenant_id: str, data: ServiceCreate
    ) -> ServiceRead:
        authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.SERVICE,
            tenant_id,
            EntityRef(tenant_id=tenant_id),
        )
        service = add_record(self.session, Service(tenant_id=tenant_id, **data.model_dump()))
        return ServiceRead.model_validate(service)

    @operation()
    @transactional()
    def get_service(self, principal: Principal, tenant_id: str, service_id: str) -> ServiceRead:
        service = load_and_authorize(
            self.session, principal, Action.READ, Service, EntityType.SERVICE, service_id, tenant_id
        )
        return ServiceRead.model_validate(service)

    @operation()
    @transactional()
    def list_services(self, principal: Principal, tenant_id: str) -> List[ServiceRead]:
        authorize(self.session, principal, Action.READ, EntityType.SERVICE, tenant_id)
        return [
            ServiceRead.model_validate(service)
            for service in list_records(self.session, Service, tenant_id=tenant_id, order_by="name")
        ]

    @operation()
    @transactional()
    @handle_repository_errors("update_service")
    def update_service(
        self, principal: Principal, tenant_id: str, service_id: str, data: ServiceUpdate
    ) -> ServiceRead:
        service = load_and_authorize(
            self.session,
            principal,
            Action.UPDATE,
            Service,
            EntityType.SERVICE,
            service_id,
            tenant_id,
        )
        update_fields(service, data.model_dump(exclude_unset=True))
        self.session.flush()
        return ServiceRead.model_validate(service)

    @operation()
    @transactional()
    def delete_service(self, principal: Principal, tenant_id: str, service_id: str) -> None:
        """Delete a service and all of its sub-resources (owners only)."""
        service = load_and_authorize(
            self.session,
            principal,
            Action.DELETE,
            Service,
            EntityType.SERVICE,
            service_id,
            tenant_id,
        )
        service_event_ids = select(ServiceEvent.id).where(ServiceEvent.service_id == service.id)
        for stmt in (
            delete(ServiceEventOwner).where(
                ServiceEventOwner.service_event_id.in_(service_event_ids)
            ),
            delete(ServiceEvent).where(ServiceEvent.service_id == service.id),
            delete(ServiceRole).where(ServiceRole.service_id == service.id),
            delete(ServiceNote).where(ServiceNote.service_id == service.id),
            delete(ServiceAdmin).where(ServiceAdmin.service_id == service.id),
            delete(ServiceGroup).where(ServiceGroup.service_id == service.id),
        ):
            self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        delete_record(self.session, service)

    # ==================== SHARED HELPERS ====================

    def _service_for(
        self,
        principal: Principal,
        action: Action,
        entity_type: EntityType,
        tenant_id: str,
        service_id: str,
    ) -> Service:
        """Load the parent service and enforce action on one of its sub-resources."""
        service = load_scoped(self.session, Service, entity_type, service_id, tenant_id)
        authorize(
            self.session,
            principal,
            action,
            entity_type,
            tenant_id,
            EntityRef(tenant_id=service.tenant_id, service_id=service.id),
            service_id=service.id,
        )
        return service

    def _create_child(
        self,
        principal: Principal,
        tenant_id: str,
        service_id: str,
        entity_type: EntityType,
        model_class: Type[Any],
        values: Dict[str, Any],
    ) -> Any:
        service = self._service_for(principal, Action.CREATE, entity_type, tenant_id, service_id)
        return add_record(
            self.session, model_class(tenant_id=tenant_id, service_id=service.id, **values)
        )

    def _update_child(
        self,
        principal: Principal,
        tenant_id: str,
        record_id: str,
        entity_type: EntityType,
        model_class: Type[Any],
        data: BaseModel,
    ) -> Any:
        record = load_and_authorize(
            self.session, principal, Action.UPDATE, model_class, entity_type, record_id, tenant_id
        )
        update_fields(record, data.model_dump(exclude_unset=True))
        self.session.flush()
        return record

    def _delete_child(
        self,
        principal: Principal,
        tenant_id: str,
        record_id: str,
        entity_type: EntityType,
        model_class: Type[Any],
    ) -> Any:
        record = load_and_authorize(
            self.session, principal, Action.DELETE, model_class, entity_type, record_id, tenant_id
        )
        delete_record(self.session, record)
        return record

    def _list_children(
        self,
        principal: Principal,
        tenant_id: str,
        service_id: str,
        entity_type: EntityType,
        model_class: Type[Any],
        order_by: str = "created_at",
    ) -> List[Any]:
        service = self._service_for(principal, Action.READ, entity_type, tenant_id, service_id)
        return list_records(
            self.session, model_class, {"service_id": service.id}, order_by=order_by
        )

    # ==================== SERVICE ADMINS ====================

    @operation()
    @transactional()
    def add_service_admin(
        self, principal: Principal, tenant_id: str, service_id: str, user_id: str
    ) -> ServiceAdminRead:
        """
        Register a tenant member as admin of one service (owners only).

        Raises:
            ValidationError: If user_id is not a member of the tenant
        """
        service = self._service_for(
            principal, Action.CREATE, EntityType.SERVICE_ADMIN, tenant_id, service_id
        )
        if get_role(self.session, tenant_id, user_id) is None:
            raise ValidationError(
                "User is not a member of this tenant",
                field="user_id",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
                tenant_id=tenant_id,
            )
        if get_record(self.session, ServiceAdmin, {"service_id": service.id, "user_id": user_id}):
            raise duplicate("ServiceAdmin", service_id=service.id, user_id=user_id)
        try:
            admin = add_record(self.session, ServiceAdmin(service_id=service.id, user_id=user_id))
        except IntegrityError as e:
            raise duplicate("ServiceAdmin", cause=e, service_id=service.id, user_id=user_id) from e
        return ServiceAdminRead.model_validate(admin)

    @operation()
    @transactional()
    def remove_service_admin(
        self, principal: Principal, tenant_id: str, service_id: str, user_id: str
    ) -> None:
        service = self._service_for(
            principal, Action.DELETE, EntityType.SERVICE_ADMIN, tenant_id, service_id
        )
        admin = get_record(self.session, ServiceAdmin, {"service_id": service.id, "user_id": user_id})
        if admin is None:
            raise AuthorizationDenied(
                EntityType.SERVICE_ADMIN, user_id, DenyReason.ENTITY_NOT_FOUND
            )
        delete_record(self.session, admin)

    @operation()
    @transactional()
    def list_service_admins(
        self, principal: Principal, tenant_id: str, service_id: str
    ) -> List[ServiceAdminRead]:
        return [
            ServiceAdminRead.model_validate(admin)
            for admin in self._list_children(
                principal, tenant_id, service_id, EntityType.SERVICE_ADMIN, ServiceAdmin
            )
        ]

    # ==================== SERVICE GROUPS ====================

    @operation()
    @transactional()
    def add_service_group(
        self, principal: Principal, tenant_id: str, service_id: str, group_id: str
    ) -> ServiceGroupRead:
        """Link a group of the same tenant to a service (owners only)."""
        service = self._service_for(
            principal, Action.CREATE, EntityType.SERVICE_GROUP, tenant_id, service_id
        )
        group = load_scoped(self.session, Group, EntityType.SERVICE_GROUP, group_id, tenant_id)
        if get_record(self.session, ServiceGroup, {"service_id": service.id, "group_id": group.id}):
            raise duplicate("ServiceGroup", service_id=service.id, group_id=group.id)
        link = add_record(self.session, ServiceGroup(service_id=service.id, group_id=group.id))
        return ServiceGroupRead.model_validate(link)

    @operation()
    @transactional()
    def remove_service_group(
        self, principal: Principal, tenant_id: str, service_id: str, group_id: str
    ) -> None:
        service = self._service_for(
            principal, Action.DELETE, EntityType.SERVICE_GROUP, tenant_id, service_id
        )
        link = get_record(self.session, ServiceGroup, {"service_id": service.id, "group_id": group_id})
        if link is None:
            raise AuthorizationDenied(
                EntityType.SERVICE_GROUP, group_id, DenyReason.ENTITY_NOT_FOUND
            )
        delete_record(self.session, link)

    @operation()
    @transactional()
    def list_service_groups(
        self, principal: Principal, tenant_id: str, service_id: str
    ) -> List[ServiceGroupRead]:
        return [
            ServiceGroupRead.model_validate(link)
            for link in self._list_children(
                principal, tenant_id, service_id, EntityType.SERVICE_GROUP, ServiceGroup
            )
        ]

    # ==================== NOTES ====================

    @operation()
    @transactional()
    @handle_repository_errors("create_note")
    def create_note(
        self, principal: Principal, tenant_id: str, service_id: str, data: ServiceNoteCreate
    ) -> ServiceNoteRead:
        note = self._create_child(
            principal, tenant_id, service_id, EntityType.SERVICE_NOTE, ServiceNote, data.model_dump()
        )
        return ServiceNoteRead.model_validate(note)

    @operation()
    @transactional()
    def update_note(
        self, principal: Principal, tenant_id: str, note_id: str, data: ServiceNoteUpdate
    ) -> ServiceNoteRead:
        note = self._update_child(
            principal, tenant_id, note_id, EntityType.SERVICE_NOTE, ServiceNote, data
        )
        return ServiceNoteRead.model_validate(note)

    @operation()
    @transactional()
    def delete_note(self, principal: Principal, tenant_id: str, note_id: str) -> None:
        self._delete_child(principal, tenant_id, note_id, EntityType.SERVICE_NOTE, ServiceNote)

    @operation()
    @transactional()
    def list_notes(
        self, principal: Principal, tenant_id: str, service_id: str
    ) -> List[ServiceNoteRead]:
        return [
            ServiceNoteRead.model_validate(note)
            for note in self._list_children(
                principal, tenant_id, service_id, EntityType.SERVICE_NOTE, ServiceNote
            )
        ]

    # ==================== ROLES ====================

    @operation()
    @transactional()
    @handle_repository_errors("create_role")
    def create_role(
        self, principal: Principal, tenant_id: str, service_id: str, data: ServiceRoleCreate
    ) -> ServiceRoleRead:
        role = self._create_child(
            principal, tenant_id, service_id, EntityType.SERVICE_ROLE, ServiceRole, data.model_dump()
        )
        return ServiceRoleRead.model_validate(role)

    @operation()
    @transactional()
    def update_role(
        self, principal: Principal, tenant_id: str, role_id: str, data: ServiceRoleUpdate
    ) -> ServiceRoleRead:
        role = self._update_child(
            principal, tenant_id, role_id, EntityType.SERVICE_ROLE, ServiceRole, data
        )
        return ServiceRoleRead.model_validate(role)

    @operation()
    @transactional()
    def delete_role(self, principal: Principal, tenant_id: str, role_id: str) -> None:
        """Delete a service role and the event owner assignments made under it."""
        role = load_and_authorize(
            self.session,
            principal,
            Action.DELETE,
            ServiceRole,
            EntityType.SERVICE_ROLE,
            role_id,
            tenant_id,
        )
        self.session.execute(
            delete(ServiceEventOwner)
            .where(ServiceEventOwner.service_role_id == role.id)
            .execution_options(synchronize_session="fetch")
        )
        delete_record(self.session, role)

    @operation()
    @transactional()
    def list_roles(
        self, principal: Principal, tenant_id: str, service_id: str
    ) -> List[ServiceRoleRead]:
        return [
            ServiceRoleRead.model_validate(role)
            for role in self._list_children(
                principal, tenant_id, service_id, EntityType.SERVICE_ROLE, ServiceRole, "name"
            )
        ]

    # ==================== SERVICE EVENTS ====================

    @operation()
    @transactional()
    @handle_repository_errors("create_service_event")
    def create_service_event(
        self, principal: Principal, tenant_id: str, service_id: str, data: ServiceEventCreate
    ) -> ServiceEventRead:
        service_event = self._create_child(
            principal,
            tenant_id,
            service_id,
            EntityType.SERVICE_EVENT,
            ServiceEvent,
            data.model_dump(),
        )
        return ServiceEventRead.model_validate(service_event)

    @operation()
    @transactional()
    def update_service_event(
        self, principal: Principal, tenant_id: str, service_event_id: str, data: ServiceEventUpdate
    ) -> ServiceEventRead:
        service_event = self._update_child(
            principal, tenant_id, service_event_id, EntityType.SERVICE_EVENT, ServiceEvent, data
        )
        if service_event.end_time <= service_event.start_time:
            raise ValidationError(
                "end_time must be after start_time",
                field="end_time",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
            )
        return ServiceEventRead.model_validate(service_event)

    @operation()
    @transactional()
    def delete_service_event(
        self, principal: Principal, tenant_id: str, service_event_id: str
    ) -> None:
        """Delete a service event and its owner assignments."""
        service_event = load_and_authorize(
            self.session,
            principal,
            Action.DELETE,
            ServiceEvent,
            EntityType.SERVICE_EVENT,
            service_event_id,
            tenant_id,
        )
        self.session.execute(
            delete(ServiceEventOwner)
            .where(ServiceEventOwner.service_event_id == service_event.id)
            .execution_options(synchronize_session="fetch")
        )
        delete_record(self.session, service_event)

    @operation()
    @transactional()
    def list_service_events(
        self, principal: Principal, tenant_id: str, service_id: str
    ) -> List[ServiceEventRead]:
        return [
            ServiceEventRead.model_validate(service_event)
            for service_event in self._list_children(
                principal, tenant_id, service_id, EntityType.SERVICE_EVENT, ServiceEvent, "date"
            )
        ]

    # ==================== SERVICE EVENT OWNERS ====================

    def _service_event_for(
        self, principal: Principal, action: Action, tenant_id: str, service_event_id: str
    ) -> ServiceEvent:
        service_event = load_scoped(
            self.session,
            ServiceEvent,
            EntityType.SERVICE_EVENT_OWNER,
            service_event_id,
            tenant_id,
        )
        self._service_for(
            principal, action, EntityType.SERVICE_EVENT_OWNER, tenant_id, service_event.service_id
        )
        return service_event

    @operation()
    @transactional()
    def assign_event_owner(
        self,
        principal: Principal,
        tenant_id: str,
        service_event_id: str,
        data: ServiceEventOwnerCreate,
    ) -> ServiceEventOwnerRead:
        """
        Assign a tenant member to a role on a service event.

        Raises:
            ValidationError: If the user is not a tenant member or the role
                belongs to another service
        """
        service_event = self._service_event_for(
            principal, Action.CREATE, tenant_id, service_event_id
        )
        role = load_scoped(
            self.session,
            ServiceRole,
            EntityType.SERVICE_EVENT_OWNER,
            data.service_role_id,
            tenant_id,
        )
        if role.service_id != service_event.service_id:
            raise ValidationError(
                "Role does not belong to this service",
                field="service_role_id",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
            )
        if get_role(self.session, tenant_id, data.user_id) is None:
            raise ValidationError(
                "User is not a member of this tenant",
                field="user_id",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
                tenant_id=tenant_id,
            )
        owner = add_record(
            self.session,
            ServiceEventOwner(
                tenant_id=tenant_id,
                service_event_id=service_event.id,
                service_role_id=role.id,
                user_id=data.user_id,
            ),
        )
        return ServiceEventOwnerRead.model_validate(owner)

    @operation()
    @transactional()
    def remove_event_owner(self, principal: Principal, tenant_id: str, owner_id: str) -> None:
        owner = load_scoped(
            self.session, ServiceEventOwner, EntityType.SERVICE_EVENT_OWNER, owner_id, tenant_id
        )
        self._service_event_for(principal, Action.DELETE, tenant_id, owner.service_event_id)
        delete_record(self.session, owner)

    @operation()
    @transactional()
    def list_event_owners(
        self, principal: Principal, tenant_id: str, service_event_id: str
    ) -> List[ServiceEventOwnerRead]:
        service_event = self._service_event_for(
            principal, Action.READ, tenant_id, service_event_id
        )
        return [
            ServiceEventOwnerRead.model_validate(owner)
            for owner in list_records(
                self.session,
                ServiceEventOwner,
                {"service_event_id": service_event.id},
                order_by="created_at",
            )
        ]
