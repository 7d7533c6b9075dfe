"""
Pydantic schemas describing quota usage of a tenant.
"""

from pydantic import BaseModel, ConfigDict, computed_field

from ..enums import ResourceKind


class ResourceUsage(BaseModel):
    kind: ResourceKind
    used: int
    limit: int

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @computed_field
    @property
    def at_limit(self) -> bool:
        return self.used >= self.limit


class TenantUsage(BaseModel):
    """Counts and limits of every quota-bound resource kind for one tenant."""

    tenant_id: str
    price_tier_id: str
    price_tier_name: str
    users: ResourceUsage
    groups: ResourceUsage
    events: ResourceUsage

    model_config = ConfigDict(frozen=True)

    def for_kind(self, kind: ResourceKind) -> ResourceUsage:
        return {
            ResourceKind.USER: self.users,
            ResourceKind.GROUP: self.groups,
            ResourceKind.EVENT: self.events,
        }[kind]
