"""
Read-only catalog of price tiers and their quota limits.

Tier rows are cached in process for a configurable TTL. The cache is the only
shared mutable state in the package, so it is guarded by a lock and must be
invalidated whenever a tier or a tenant's tier assignment changes.
"""

import threading
import time
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select

from ..config import get_config
from ..constants import Limits
from ..context.operation_context import operation
from ..context.service_decorators import transactional
from ..db.db_tenant_models import PriceTier, Tenant
from ..enums import DenyReason, EntityType, ResourceKind
from ..exceptions import AuthorizationDenied, ErrorCode, ServiceError, not_found
from ..schemas.tenant_schema import PriceTierRead
from ..utils.crud_helpers import get_record, get_record_by_id
from .base_service import SessionManagedService


class PriceTierCatalog(SessionManagedService):
    """
    Lookup of quota limits per subscription tier.
    """

    _cache: Dict[str, Tuple[float, PriceTierRead]] = {}
    _cache_lock = threading.Lock()

    @classmethod
    def _cached(cls, tier_id: str) -> Optional[PriceTierRead]:
        ttl = get_config().quota.catalog_cache_ttl_seconds
        if ttl <= 0:
            return None
        with cls._cache_lock:
            entry = cls._cache.get(tier_id)
            if entry is None:
                return None
            stored_at, tier = entry
            if time.monotonic() - stored_at > ttl:
                del cls._cache[tier_id]
                return None
            return tier

    @classmethod
    def _remember(cls, tier: PriceTierRead) -> None:
        if get_config().quota.catalog_cache_ttl_seconds <= 0:
            return
        with cls._cache_lock:
            if tier.id not in cls._cache and len(cls._cache) >= Limits.MAX_CACHED_TIERS:
                # FIFO eviction
                del cls._cache[next(iter(cls._cache))]
            cls._cache[tier.id] = (time.monotonic(), tier)

    @classmethod
    def invalidate(cls, tier_id: Optional[str] = None) -> None:
        """Drop one tier (or every tier) from the cache."""
        with cls._cache_lock:
            if tier_id is None:
                cls._cache.clear()
            else:
                cls._cache.pop(tier_id, None)

    @operation()
    @transactional()
    def get_tier(self, tier_id: str) -> PriceTierRead:
        """
        Get a tier by id.

        Raises:
            RepositoryError: If the tier doesn't exist
        """
        cached = self._cached(tier_id)
        if cached is not None:
            return cached

        tier = get_record_by_id(self.session, PriceTier, tier_id)
        if tier is None:
            raise not_found("PriceTier", price_tier_id=tier_id)

        result = PriceTierRead.model_validate(tier)
        self._remember(result)
        return result

    @operation()
    @transactional()
    def get_tier_for_tenant(self, tenant_id: str) -> PriceTierRead:
        """Get the tier currently assigned to a tenant."""
        tier_id = self.session.scalar(select(Tenant.price_tier_id).where(Tenant.id == tenant_id))
        if tier_id is None:
            raise AuthorizationDenied(EntityType.TENANT, tenant_id, DenyReason.ENTITY_NOT_FOUND)
        return self.get_tier(tier_id)

    @operation()
    @transactional()
    def get_default_tier(self) -> PriceTierRead:
        """
        Get the tier new tenants are placed on.

        Raises:
            ServiceError: If the configured default tier is missing or inactive
        """
        name = get_config().quota.default_price_tier_name
        tier = get_record(self.session, PriceTier, {"name": name, "is_active": True})
        if tier is None:
            raise ServiceError(
                f"Default price tier '{name}' is not configured",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation="get_default_tier",
                price_tier_name=name,
            )
        result = PriceTierRead.model_validate(tier)
        self._remember(result)
        return result

    @operation()
    @transactional()
    def list_tiers(self, include_inactive: bool = False) -> List[PriceTierRead]:
        """List tiers ordered by monthly price."""
        stmt = select(PriceTier).order_by(PriceTier.price_monthly, PriceTier.name)
        if not include_inactive:
            stmt = stmt.where(PriceTier.is_active.is_(True))
        return [PriceTierRead.model_validate(tier) for tier in self.session.scalars(stmt)]

    @staticmethod
    def limit_for(tier: PriceTierRead, resource_kind: ResourceKind) -> int:
        """Quota limit of resource_kind under tier."""
        if resource_kind == ResourceKind.USER:
            return tier.user_limit
        if resource_kind == ResourceKind.GROUP:
            return tier.group_limit
        if resource_kind == ResourceKind.EVENT:
            return tier.event_limit
        raise ValueError(f"Not a quota-bound resource kind: {resource_kind}")
