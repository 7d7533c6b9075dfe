"""
Service models and their sub-resources.

A service belongs to a tenant; notes, roles, service events and event owners
belong to a service and carry the tenant id for scoping.
"""

from sqlalchemy import Column, Date, ForeignKey, String, Text, Time, UniqueConstraint

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Service(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "services"

    tenant_id = Column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    default_start_time = Column(Time, nullable=True)
    default_end_time = Column(Time, nullable=True)


class ServiceAdmin(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_admins"

    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=False)

    __table_args__ = (UniqueConstraint("service_id", "user_id", name="uq_service_admin"),)


class ServiceGroup(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_groups"

    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (UniqueConstraint("service_id", "group_id", name="uq_service_group"),)


class ServiceNote(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_notes"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)


class ServiceRole(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_roles"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class ServiceEvent(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_events"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    subtitle = Column(String(200), nullable=True)


class ServiceEventOwner(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "service_event_owners"

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    service_event_id = Column(
        String(36), ForeignKey("service_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_role_id = Column(
        String(36), ForeignKey("service_roles.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(36), nullable=False)
