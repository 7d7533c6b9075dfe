"""
Pydantic schemas for groups, events and resources.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..enums import EventVisibility
from ..exceptions import ErrorCode, ValidationError
from .mixins import CoreEntityMixin, IdMixin, ReadModel, TimestampMixin


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class GroupRead(ReadModel, CoreEntityMixin):
    name: str
    description: Optional[str] = None


class GroupMemberRead(ReadModel, IdMixin, TimestampMixin):
    group_id: str
    user_id: str


def _check_time_range(start: Optional[dt.time], end: Optional[dt.time]) -> None:
    if start is not None and end is not None and end <= start:
        raise ValidationError(
            "end_time must be after start_time",
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            field="end_time",
        )


class EventCreate(BaseModel):
    """
    Schema for creating an event. The creator is taken from the principal.
    """

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    date: dt.date
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    event_link: Optional[str] = Field(default=None, max_length=500)
    visibility: EventVisibility = EventVisibility.PRIVATE

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_times(self) -> "EventCreate":
        _check_time_range(self.start_time, self.end_time)
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    event_link: Optional[str] = Field(default=None, max_length=500)
    visibility: Optional[EventVisibility] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def validate_times(self) -> "EventUpdate":
        _check_time_range(self.start_time, self.end_time)
        return self


class EventRead(ReadModel, CoreEntityMixin):
    name: str
    description: Optional[str] = None
    date: dt.date
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    event_link: Optional[str] = None
    visibility: EventVisibility
    created_by: Optional[str] = None


class ResourceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    url: str = Field(min_length=1, max_length=500)
    icon: str = Field(default="link", min_length=1, max_length=100)

    model_config = ConfigDict(extra="ignore")


class ResourceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    icon: Optional[str] = Field(default=None, min_length=1, max_length=100)

    model_config = ConfigDict(extra="ignore")


class ResourceRead(ReadModel, CoreEntityMixin):
    name: str
    description: Optional[str] = None
    url: str
    icon: str
