"""
Service layer for the tenant access core.

Every caller-facing operation takes the acting Principal and goes through the
authorization engine; quota-bound creations go through QuotaService in the
same transaction.
"""

from .base_service import SessionManagedService
from .event_service import EventService
from .group_service import GroupService
from .invitation_service import InvitationService
from .membership_lifecycle import MembershipLifecycle
from .membership_service import MembershipService
from .price_tier_service import PriceTierCatalog
from .quota_service import QuotaService
from .resource_service import ResourceService
from .service_service import ServiceService
from .tenant_service import TenantService

__all__ = [
    "SessionManagedService",
    "PriceTierCatalog",
    "QuotaService",
    "MembershipService",
    "MembershipLifecycle",
    "InvitationService",
    "TenantService",
    "GroupService",
    "EventService",
    "ResourceService",
    "ServiceService",
]
