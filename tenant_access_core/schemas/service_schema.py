"""
Pydantic schemas for services and their sub-resources.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import ErrorCode, ValidationError
from .mixins import CoreEntityMixin, IdMixin, ReadModel, TimestampMixin


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    default_start_time: Optional[dt.time] = None
    default_end_time: Optional[dt.time] = None

    model_config = ConfigDict(extra="ignore")


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    default_start_time: Optional[dt.time] = None
    default_end_time: Optional[dt.time] = None

    model_config = ConfigDict(extra="ignore")


class ServiceRead(ReadModel, CoreEntityMixin):
    name: str
    default_start_time: Optional[dt.time] = None
    default_end_time: Optional[dt.time] = None


class ServiceAdminRead(ReadModel, IdMixin, TimestampMixin):
    service_id: str
    user_id: str


class ServiceGroupRead(ReadModel, IdMixin, TimestampMixin):
    service_id: str
    group_id: str


class ServiceNoteCreate(BaseModel):
    text: str = Field(min_length=1)
    link: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(extra="ignore")


class ServiceNoteUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1)
    link: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(extra="ignore")


class ServiceNoteRead(ReadModel, CoreEntityMixin):
    service_id: str
    text: str
    link: Optional[str] = None


class ServiceRoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ServiceRoleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ServiceRoleRead(ReadModel, CoreEntityMixin):
    service_id: str
    name: str
    description: Optional[str] = None


class ServiceEventCreate(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    subtitle: Optional[str] = Field(default=None, max_length=200)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_times(self) -> "ServiceEventCreate":
        if self.end_time <= self.start_time:
            raise ValidationError(
                "end_time must be after start_time",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
                field="end_time",
            )
        return self


class ServiceEventUpdate(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    subtitle: Optional[str] = Field(default=None, max_length=200)

    model_config = ConfigDict(extra="ignore")


class ServiceEventRead(ReadModel, CoreEntityMixin):
    service_id: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    subtitle: Optional[str] = None


class ServiceEventOwnerCreate(BaseModel):
    service_role_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore")


class ServiceEventOwnerRead(ReadModel, CoreEntityMixin):
    service_event_id: str
    service_role_id: str
    user_id: str
