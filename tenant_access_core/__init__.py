"""
Tenant access core.

Access control and quota enforcement for a multi-tenant organization app:
the authorization policy table, per-tier quotas, invitations, the membership
lifecycle and the tenant join flow.
"""

from .authorization.engine import AccessFacts, Decision, EntityRef, Principal, decide, enforce
from .config import AppConfig, get_config, reset_config, set_config
from .enums import Action, EntityType, EventVisibility, ResourceKind, Role
from .exceptions import (
    AuthorizationDenied,
    BaseError,
    DuplicateMembership,
    IdentityProviderError,
    InvalidTransition,
    InvitationExpired,
    InvitationInvalid,
    QuotaExceeded,
)

__version__ = "0.1.0"

__all__ = [
    "AccessFacts",
    "Decision",
    "EntityRef",
    "Principal",
    "decide",
    "enforce",
    "AppConfig",
    "get_config",
    "set_config",
    "reset_config",
    "Action",
    "EntityType",
    "EventVisibility",
    "ResourceKind",
    "Role",
    "AuthorizationDenied",
    "BaseError",
    "DuplicateMembership",
    "IdentityProviderError",
    "InvalidTransition",
    "InvitationExpired",
    "InvitationInvalid",
    "QuotaExceeded",
]
