"""
Pydantic schemas for tenants and price tiers.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import ErrorCode, ValidationError
from .mixins import IdMixin, ReadModel, TimestampMixin

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _validate_slug(v: str) -> str:
    v = v.strip().lower()
    if not SLUG_PATTERN.match(v):
        raise ValidationError(
            "Slug may contain only lowercase letters, digits and single hyphens",
            error_code=ErrorCode.INVALID_FORMAT,
            field="slug",
            value=v,
        )
    return v


class PriceTierRead(ReadModel, IdMixin):
    """
    Catalog entry with the quota limits of a tier.
    """

    name: str
    description: Optional[str] = None
    user_limit: int = Field(ge=0)
    group_limit: int = Field(ge=0)
    event_limit: int = Field(ge=0)
    price_monthly: Decimal = Decimal("0")
    price_yearly: Decimal = Decimal("0")
    is_active: bool = True


class TenantCreate(BaseModel):
    """
    Schema for creating a new tenant.

    Without price_tier_id the configured default tier is used.
    """

    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=100)
    price_tier_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("slug")
    def validate_slug(cls, v: str) -> str:
        return _validate_slug(v)


class TenantUpdate(BaseModel):
    """
    Schema for updating an existing tenant. The tier is changed separately.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100)

    model_config = ConfigDict(extra="ignore")

    @field_validator("slug")
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        return _validate_slug(v) if v is not None else v


class TenantRead(ReadModel, IdMixin, TimestampMixin):
    """
    Schema for reading tenant data.
    """

    name: str
    slug: str
    price_tier_id: str
