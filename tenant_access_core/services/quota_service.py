"""
Per-tenant quota enforcement for users, groups and events.

insert_within_quota() is the only supported way to create a quota-bound row.
It locks the tenant row before counting, so concurrent creations against the
same tenant serialize and two callers can never both take the last slot.
Resources and services are not quota-bound.
"""

from typing import Any, Dict, Type

from sqlalchemy import select

from ..context.operation_context import operation
from ..context.service_decorators import transactional
from ..db.db_content_models import Event, Group
from ..db.db_membership_models import TenantMember
from ..db.db_tenant_models import Tenant
from ..enums import DenyReason, EntityType, ResourceKind
from ..exceptions import AuthorizationDenied, QuotaExceeded
from ..schemas.quota_schema import ResourceUsage, TenantUsage
from ..utils.crud_helpers import add_record, count_records
from .price_tier_service import PriceTierCatalog
from .base_service import SessionManagedService

QUOTA_MODELS: Dict[ResourceKind, Type[Any]] = {
    ResourceKind.USER: TenantMember,
    ResourceKind.GROUP: Group,
    ResourceKind.EVENT: Event,
}


class QuotaService(SessionManagedService):
    """
    Decides whether one more unit of a quota-bound resource may be created.
    """

    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.catalog = self._share_session(PriceTierCatalog)

    def _count(self, tenant_id: str, resource_kind: ResourceKind) -> int:
        return count_records(self.session, QUOTA_MODELS[resource_kind], tenant_id=tenant_id)

    def _lock_tenant(self, tenant_id: str) -> Tenant:
        # populate_existing so a tier change committed elsewhere is seen
        tenant = self.session.scalars(
            select(Tenant)
            .where(Tenant.id == tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if tenant is None:
            raise AuthorizationDenied(EntityType.TENANT, tenant_id, DenyReason.ENTITY_NOT_FOUND)
        return tenant

    @operation()
    @transactional()
    def can_create(self, tenant_id: str, resource_kind: ResourceKind) -> bool:
        """
        Advisory check: is there room for one more resource_kind?

        The answer can be stale by the time the caller inserts; only
        insert_within_quota() makes the check binding.
        """
        tier = self.catalog.get_tier_for_tenant(tenant_id)
        return self._count(tenant_id, resource_kind) < self.catalog.limit_for(tier, resource_kind)

    @operation()
    @transactional()
    def usage(self, tenant_id: str) -> TenantUsage:
        """Current counts and limits of every quota-bound kind."""
        tier = self.catalog.get_tier_for_tenant(tenant_id)

        def usage_for(kind: ResourceKind) -> ResourceUsage:
            return ResourceUsage(
                kind=kind,
                used=self._count(tenant_id, kind),
                limit=self.catalog.limit_for(tier, kind),
            )

        return TenantUsage(
            tenant_id=tenant_id,
            price_tier_id=tier.id,
            price_tier_name=tier.name,
            users=usage_for(ResourceKind.USER),
            groups=usage_for(ResourceKind.GROUP),
            events=usage_for(ResourceKind.EVENT),
        )

    @transactional()
    def insert_within_quota(self, tenant_id: str, resource_kind: ResourceKind, row: Any) -> Any:
        """
        Insert row if the tenant still has room for one more resource_kind.

        Runs in the caller's transaction: the tenant row lock is held until
        the caller commits, and a failure of the caller rolls the insert back.

        Raises:
            QuotaExceeded: If count >= limit for the tenant's tier
        """
        tenant = self._lock_tenant(tenant_id)
        tier = self.catalog.get_tier(tenant.price_tier_id)
        limit = self.catalog.limit_for(tier, resource_kind)
        count = self._count(tenant_id, resource_kind)

        if count >= limit:
            raise QuotaExceeded(resource_kind, limit, tenant_id, current_count=count)

        self.logger.debug(
            f"Quota check passed for {resource_kind.value}",
            extra={"tenant_id": tenant_id, "count": count, "limit": limit},
        )
        return add_record(self.session, row)
