"""
Validation schemas for data passed into and returned from the services.
"""

from .content_schema import (
    EventCreate,
    EventRead,
    EventUpdate,
    GroupCreate,
    GroupMemberRead,
    GroupRead,
    GroupUpdate,
    ResourceCreate,
    ResourceRead,
    ResourceUpdate,
)
from .membership_schema import InvitationCreate, InvitationRead, MembershipRead
from .quota_schema import ResourceUsage, TenantUsage
from .service_schema import (
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
from .tenant_schema import PriceTierRead, TenantCreate, TenantRead, TenantUpdate

__all__ = [
    "PriceTierRead",
    "TenantCreate",
    "TenantRead",
    "TenantUpdate",
    "MembershipRead",
    "InvitationCreate",
    "InvitationRead",
    "ResourceUsage",
    "TenantUsage",
    "GroupCreate",
    "GroupRead",
    "GroupUpdate",
    "GroupMemberRead",
    "EventCreate",
    "EventRead",
    "EventUpdate",
    "ResourceCreate",
    "ResourceRead",
    "ResourceUpdate",
    "ServiceCreate",
    "ServiceRead",
    "ServiceUpdate",
    "ServiceAdminRead",
    "ServiceGroupRead",
    "ServiceNoteCreate",
    "ServiceNoteRead",
    "ServiceNoteUpdate",
    "ServiceRoleCreate",
    "ServiceRoleRead",
    "ServiceRoleUpdate",
    "ServiceEventCreate",
    "ServiceEventRead",
    "ServiceEventUpdate",
    "ServiceEventOwnerCreate",
    "ServiceEventOwnerRead",
]
