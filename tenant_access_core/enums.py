"""
Enums used across the tenant_access_core package.

This module contains enum definitions that are used by multiple modules
to avoid circular import issues.
"""

import enum


class Role(str, enum.Enum):
    """Role of a principal inside a tenant."""

    OWNER = "owner"
    MEMBER = "member"


class Action(str, enum.Enum):
    """Actions the authorization engine decides on."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class EntityType(str, enum.Enum):
    """Entity types covered by the policy table."""

    TENANT = "tenant"
    MEMBERSHIP = "membership"
    INVITATION = "invitation"
    GROUP = "group"
    GROUP_MEMBER = "group_member"
    RESOURCE = "resource"
    SERVICE = "service"
    SERVICE_ADMIN = "service_admin"
    SERVICE_GROUP = "service_group"
    SERVICE_NOTE = "service_note"
    SERVICE_ROLE = "service_role"
    SERVICE_EVENT = "service_event"
    SERVICE_EVENT_OWNER = "service_event_owner"
    EVENT = "event"


class ResourceKind(str, enum.Enum):
    """Quota-bound resource kinds."""

    USER = "user"
    GROUP = "group"
    EVENT = "event"


class EventVisibility(str, enum.Enum):
    """Visibility of an event outside its tenant."""

    PUBLIC = "public"
    PRIVATE = "private"


class DenyReason(str, enum.Enum):
    """Internal reason for a deny decision. Never shown to callers."""

    NOT_AUTHENTICATED = "not_authenticated"
    NOT_A_MEMBER = "not_a_member"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_CREATOR = "not_creator"
    NOT_SERVICE_ADMIN = "not_service_admin"
    TENANT_MISMATCH = "tenant_mismatch"
    ENTITY_NOT_FOUND = "entity_not_found"
    NO_POLICY = "no_policy"


class IdentityErrorKind(str, enum.Enum):
    """Stable kinds that identity-provider failures are normalized into."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    USER_NOT_FOUND = "user_not_found"
    USER_ALREADY_REGISTERED = "user_already_registered"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class JoinStep(str, enum.Enum):
    """Steps of the tenant join flow."""

    WELCOME = "welcome"
    EMAIL_DETECTION = "email_detection"
    SIGNUP = "signup"
    JOIN_SIGNIN = "join_signin"
    MEMBER_SIGNIN = "member_signin"
    SUCCESS = "success"


class JoinErrorKind(str, enum.Enum):
    """User-facing failure kinds of the join flow."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    ACCOUNT_EXISTS = "account_exists"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    EMAIL_CHECK_FAILED = "email_check_failed"
    IDENTITY_UNAVAILABLE = "identity_unavailable"
    INVITATION_INVALID = "invitation_invalid"
    INVITATION_EXPIRED = "invitation_expired"
    LIMIT_REACHED = "limit_reached"
    TENANT_NOT_FOUND = "tenant_not_found"
    UNKNOWN = "unknown"
