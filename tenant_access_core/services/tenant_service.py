"""
Tenant service with direct SQLAlchemy access.

Creating a tenant makes the creator its owner in the same transaction;
deleting one runs the membership cascade before removing tenant content.
"""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from ..authorization.engine import EntityRef, Principal
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_content_models import Event, Group, GroupMember, Resource
from ..db.db_membership_models import Invitation, TenantMember
from ..db.db_service_models import (
    Service,
    ServiceAdmin,
    ServiceEvent,
    ServiceEventOwner,
    ServiceGroup,
    ServiceNote,
    ServiceRole,
)
from ..db.db_tenant_models import Tenant
from ..enums import Action, DenyReason, EntityType
from ..exceptions import AuthorizationDenied, ErrorCode, ServiceError
from ..schemas.tenant_schema import TenantCreate, TenantRead, TenantUpdate
from ..utils.crud_helpers import add_record, get_record, get_record_by_id, update_fields
from .access import authorize
from .base_service import SessionManagedService
from .membership_lifecycle import MembershipLifecycle
from .membership_service import MembershipService
from .price_tier_service import PriceTierCatalog


class TenantService(SessionManagedService):
    """
    Service for managing tenants.
    """

    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.catalog = self._share_session(PriceTierCatalog)
        self.memberships = self._share_session(MembershipService)
        self.lifecycle = self._share_session(MembershipLifecycle)

    def _duplicate_slug(self, slug: str, cause: Optional[Exception] = None) -> ServiceError:
        return ServiceError(
            f"Tenant already exists: {slug}",
            error_code=ErrorCode.DUPLICATE,
            operation="create_tenant",
            cause=cause,
            status_code=409,
            slug=slug,
        )

    def _load(self, tenant_id: str) -> Tenant:
        tenant = get_record_by_id(self.session, Tenant, tenant_id)
        if tenant is None:
            raise AuthorizationDenied(EntityType.TENANT, tenant_id, DenyReason.ENTITY_NOT_FOUND)
        return tenant

    def _authorize(self, principal: Principal, action: Action, tenant: Tenant) -> None:
        authorize(
            self.session,
            principal,
            action,
            EntityType.TENANT,
            tenant.id,
            EntityRef.from_record(tenant, tenant_id=tenant.id),
        )

    @operation()
    @transactional()
    @handle_repository_errors("create_tenant")
    def create_tenant(self, principal: Principal, tenant_data: TenantCreate) -> TenantRead:
        """
        Create a tenant; the creating principal becomes its owner.

        Raises:
            AuthorizationDenied: If the principal is anonymous
            ServiceError: If the slug is taken or the tier is unknown
            QuotaExceeded: If the tier allows no users at all
        """
        authorize(self.session, principal, Action.CREATE, EntityType.TENANT, None)

        if get_record(self.session, Tenant, {"slug": tenant_data.slug}) is not None:
            raise self._duplicate_slug(tenant_data.slug)

        if tenant_data.price_tier_id:
            tier = self.catalog.get_tier(tenant_data.price_tier_id)
        else:
            tier = self.catalog.get_default_tier()

        tenant = Tenant(name=tenant_data.name, slug=tenant_data.slug, price_tier_id=tier.id)
        try:
            add_record(self.session, tenant)
        except IntegrityError as e:
            raise self._duplicate_slug(tenant_data.slug, cause=e) from e

        self.memberships.create_owner_membership(tenant.id, principal.id)

        self.logger.info(
            f"Created tenant: id={tenant.id}, slug={tenant.slug}",
            extra={"tenant_id": tenant.id, "price_tier": tier.name},
        )
        return TenantRead.model_validate(tenant)

    @operation()
    @transactional()
    def get_tenant(self, principal: Principal, tenant_id: str) -> TenantRead:
        tenant = self._load(tenant_id)
        self._authorize(principal, Action.READ, tenant)
        return TenantRead.model_validate(tenant)

    @operation()
    @transactional()
    def get_tenant_by_slug(self, principal: Principal, slug: str) -> TenantRead:
        tenant = get_record(self.session, Tenant, {"slug": slug})
        if tenant is None:
            raise AuthorizationDenied(EntityType.TENANT, slug, DenyReason.ENTITY_NOT_FOUND)
        self._authorize(principal, Action.READ, tenant)
        return TenantRead.model_validate(tenant)

    @transactional()
    def find_by_slug(self, slug: str) -> Optional[TenantRead]:
        """
        Resolve a slug without a principal.

        Used by the join flow before the visitor has signed in; not a
        caller-facing read.
        """
        tenant = get_record(self.session, Tenant, {"slug": slug})
        return TenantRead.model_validate(tenant) if tenant else None

    @operation()
    @transactional()
    def list_tenants_for_user(self, principal: Principal) -> List[TenantRead]:
        """Tenants the principal is a member of, oldest membership first."""
        if not principal.is_authenticated:
            return []
        tenants = self.session.scalars(
            select(Tenant)
            .join(TenantMember, TenantMember.tenant_id == Tenant.id)
            .where(TenantMember.user_id == principal.id)
            .order_by(TenantMember.created_at)
        )
        return [TenantRead.model_validate(tenant) for tenant in tenants]

    @operation()
    @transactional()
    @handle_repository_errors("update_tenant")
    def update_tenant(
        self, principal: Principal, tenant_id: str, tenant_data: TenantUpdate
    ) -> TenantRead:
        """Update name or slug (owners only)."""
        tenant = self._load(tenant_id)
        self._authorize(principal, Action.UPDATE, tenant)

        if tenant_data.slug and tenant_data.slug != tenant.slug:
            if get_record(self.session, Tenant, {"slug": tenant_data.slug}) is not None:
                raise self._duplicate_slug(tenant_data.slug)

        update_fields(tenant, tenant_data.model_dump(exclude_unset=True))
        self.session.flush()
        return TenantRead.model_validate(tenant)

    @operation()
    @transactional()
    def change_price_tier(
        self, principal: Principal, tenant_id: str, price_tier_id: str
    ) -> TenantRead:
        """
        Move a tenant to another tier (owners only).

        Existing rows above the new limits are kept; limits apply to the
        next creation.

        Raises:
            ServiceError: If the tier is inactive
        """
        tenant = self._load(tenant_id)
        self._authorize(principal, Action.UPDATE, tenant)

        self.catalog.invalidate(price_tier_id)
        tier = self.catalog.get_tier(price_tier_id)
        if not tier.is_active:
            raise ServiceError(
                f"Price tier is not available: {tier.name}",
                error_code=ErrorCode.BUSINESS_RULE_VIOLATION,
                operation="change_price_tier",
                status_code=400,
                price_tier_id=price_tier_id,
            )

        previous_tier_id = tenant.price_tier_id
        tenant.price_tier_id = tier.id
        self.session.flush()
        self.catalog.invalidate(previous_tier_id)

        self.logger.info(
            "Changed price tier",
            extra={"tenant_id": tenant_id, "from_tier": previous_tier_id, "to_tier": tier.id},
        )
        return TenantRead.model_validate(tenant)

    @operation()
    @transactional()
    def delete_tenant(self, principal: Principal, tenant_id: str) -> None:
        """
        Delete a tenant and everything in it (owners only).

        Memberships go first through the lifecycle cascade, then content
        children before their parents.
        """
        tenant = self._load(tenant_id)
        self._authorize(principal, Action.DELETE, tenant)

        self.lifecycle.remove_all_memberships(tenant_id)

        service_ids = select(Service.id).where(Service.tenant_id == tenant_id)
        group_ids = select(Group.id).where(Group.tenant_id == tenant_id)
        for stmt in (
            delete(Invitation).where(Invitation.tenant_id == tenant_id),
            delete(ServiceEventOwner).where(ServiceEventOwner.tenant_id == tenant_id),
            delete(ServiceEvent).where(ServiceEvent.tenant_id == tenant_id),
            delete(ServiceRole).where(ServiceRole.tenant_id == tenant_id),
            delete(ServiceNote).where(ServiceNote.tenant_id == tenant_id),
            delete(ServiceAdmin).where(ServiceAdmin.service_id.in_(service_ids)),
            delete(ServiceGroup).where(ServiceGroup.service_id.in_(service_ids)),
            delete(Service).where(Service.tenant_id == tenant_id),
            delete(GroupMember).where(GroupMember.group_id.in_(group_ids)),
            delete(Group).where(Group.tenant_id == tenant_id),
            delete(Event).where(Event.tenant_id == tenant_id),
            delete(Resource).where(Resource.tenant_id == tenant_id),
        ):
            self.session.execute(stmt.execution_options(synchronize_session="fetch"))

        self.session.delete(tenant)
        self.session.flush()
        self.logger.info("Deleted tenant", extra={"tenant_id": tenant_id})
