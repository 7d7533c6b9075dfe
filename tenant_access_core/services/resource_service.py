"""
Tenant resources (links shown to members). Not quota-bound.
"""

from typing import List

from ..authorization.engine import EntityRef, Principal
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_content_models import Resource
from ..enums import Action, EntityType
from ..schemas.content_schema import ResourceCreate, ResourceRead, ResourceUpdate
from ..utils.crud_helpers import add_record, delete_record, list_records, update_fields
from .access import authorize, load_and_authorize
from .base_service import SessionManagedService


class ResourceService(SessionManagedService):
    @operation()
    @transactional()
    @handle_repository_errors("create_resource")
    def create_resource(
        self, principal: Principal, tenant_id: str, data: ResourceCreate
    ) -> ResourceRead:
        authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.RESOURCE,
            tenant_id,
            EntityRef(tenant_id=tenant_id),
        )
        resource = add_record(self.session, Resource(tenant_id=tenant_id, **data.model_dump()))
        return ResourceRead.model_validate(resource)

    @operation()
    @transactional()
    def get_resource(self, principal: Principal, tenant_id: str, resource_id: str) -> ResourceRead:
        resource = load_and_authorize(
            self.session,
            principal,
            Action.READ,
            Resource,
            EntityType.RESOURCE,
            resource_id,
            tenant_id,
        )
        return ResourceRead.model_validate(resource)

    @operation()
    @transactional()
    def list_resources(self, principal: Principal, tenant_id: str) -> List[ResourceRead]:
        authorize(self.session, principal, Action.READ, EntityType.RESOURCE, tenant_id)
        return [
            ResourceRead.model_validate(resource)
            for resource in list_records(
                self.session, Resource, tenant_id=tenant_id, order_by="name"
            )
        ]

    @operation()
    @transactional()
    @handle_repository_errors("update_resource")
    def update_resource(
        self, principal: Principal, tenant_id: str, resource_id: str, data: ResourceUpdate
    ) -> ResourceRead:
        resource = load_and_authorize(
            self.session,
            principal,
            Action.UPDATE,
            Resource,
            EntityType.RESOURCE,
            resource_id,
            tenant_id,
        )
        update_fields(resource, data.model_dump(exclude_unset=True))
        self.session.flush()
        return ResourceRead.model_validate(resource)

    @operation()
    @transactional()
    def delete_resource(self, principal: Principal, tenant_id: str, resource_id: str) -> None:
        resource = load_and_authorize(
            self.session,
            principal,
            Action.DELETE,
            Resource,
            EntityType.RESOURCE,
            resource_id,
            tenant_id,
        )
        delete_record(self.session, resource)
