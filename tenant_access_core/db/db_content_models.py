"""
Tenant-scoped content models: groups, events and resources.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Column, Date, Enum, ForeignKey, String, Text, Time, UniqueConstraint

from ..enums import EventVisibility
from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class Group(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "groups"

    tenant_id = Column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class GroupMember(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "group_members"

    group_id = Column(
        String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=False, index=True)

    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)


class Event(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "events"

    tenant_id = Column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    event_link = Column(String(500), nullable=True)
    visibility = Column(
        Enum(
            EventVisibility,
            name="event_visibility",
            values_callable=lambda values: [value.value for value in values],
        ),
        nullable=False,
        default=EventVisibility.PRIVATE,
    )
    created_by = Column(String(36), nullable=True)


class Resource(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "resources"

    tenant_id = Column(
        String(36), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String(500), nullable=False)
    icon = Column(String(100), nullable=False)
