"""
Membership and invitation models.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, UniqueConstraint

from ..enums import Role
from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base

role_enum = Enum(
    Role,
    name="tenant_role",
    values_callable=lambda roles: [role.value for role in roles],
    validate_strings=True,
)


class TenantMember(Base, UUIDMixin, TimestampMixin):
    """Binding of a principal to a tenant with a role."""

    __tablename__ = "tenant_members"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(role_enum, nullable=False, default=Role.MEMBER)

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_member"),
        Index("ix_tenant_member_role", "tenant_id", "role"),
    )


class Invitation(Base, UUIDMixin, TimestampMixin):
    """Single-use, time-limited token granting a role on join."""

    __tablename__ = "invitations"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(role_enum, nullable=False, default=Role.MEMBER)
    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (Index("ix_invitation_lookup", "tenant_id", "token"),)
