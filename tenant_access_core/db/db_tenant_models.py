"""
Tenant and price tier models.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Numeric, String, Text

from .db_base import TimestampMixin, UUIDMixin
from .db_config import Base


class PriceTier(Base, UUIDMixin, TimestampMixin):
    """Catalog row holding the quota limits of a subscription tier."""

    __tablename__ = "price_tiers"

    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    user_limit = Column(Integer, nullable=False)
    group_limit = Column(Integer, nullable=False)
    event_limit = Column(Integer, nullable=False)
    price_monthly = Column(Numeric(10, 2), nullable=False, default=0)
    price_yearly = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class Tenant(Base, UUIDMixin, TimestampMixin):
    """Root of isolation; every quota-bound entity references a tenant."""

    __tablename__ = "tenants"

    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    price_tier_id = Column(String(36), ForeignKey("price_tiers.id"), nullable=False)

    __table_args__ = (Index("ix_tenant_slug", "slug"),)
