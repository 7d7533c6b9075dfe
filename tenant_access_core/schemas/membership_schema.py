"""
Pydantic schemas for memberships and invitations.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import Role
from ..exceptions import ErrorCode, ValidationError
from .mixins import CoreEntityMixin, ReadModel


class MembershipRead(ReadModel, CoreEntityMixin):
    user_id: str
    role: Role


class InvitationCreate(BaseModel):
    """
    Schema for issuing an invitation.
    """

    email: str = Field(min_length=3, max_length=255)
    role: Role = Role.MEMBER

    model_config = ConfigDict(extra="ignore")

    @field_validator("email")
    def validate_email(cls, v: str) -> str:
        """
        Basic email validation.
        """
        v = v.strip()
        if "@" not in v:
            raise ValidationError(
                "Invalid email address",
                error_code=ErrorCode.INVALID_FORMAT,
                field="email",
                value=v,
            )
        return v.lower()


class InvitationRead(ReadModel, CoreEntityMixin):
    """
    Issued invitation. The token is only meant for the owner who shares it.
    """

    email: str
    role: Role
    token: str
    expires_at: datetime
