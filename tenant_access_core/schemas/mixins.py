"""
Common Pydantic schema mixins shared by the read schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReadModel(BaseModel):
    """Read schemas are built from ORM rows and never mutated."""

    model_config = ConfigDict(from_attributes=True, frozen=True)


class IdMixin(BaseModel):
    """Mixin for schemas that include a unique identifier."""

    id: str = Field(..., description="Unique identifier for the record")


class TenantMixin(BaseModel):
    """Mixin for schemas that belong to a tenant."""

    tenant_id: str = Field(..., min_length=1, description="Owning tenant")


class TimestampMixin(BaseModel):
    """Mixin for schemas that include creation and update timestamps."""

    created_at: datetime = Field(..., description="Timestamp when the record was created")
    updated_at: datetime = Field(..., description="Timestamp when the record was last updated")


class CoreEntityMixin(IdMixin, TenantMixin, TimestampMixin):
    """Common mixin for tenant-scoped rows with ID and timestamps."""

    pass
