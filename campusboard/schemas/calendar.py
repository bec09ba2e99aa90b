from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

EventType = Literal["semester", "exam", "holiday", "application", "other"]


class CalendarEventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date | None = None
    event_type: EventType = "other"
    description: str | None = None
    location: str | None = Field(None, max_length=255)
    is_important: bool = False
    announcement_id: int | None = None


class CalendarEventCreate(CalendarEventBase):
    @model_validator(mode="after")
    def check_dates(self) -> "CalendarEventCreate":
        # A single-day event only needs its start date
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CalendarEventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    event_type: EventType | None = None
    description: str | None = None
    location: str | None = Field(None, max_length=255)
    is_important: bool | None = None
    announcement_id: int | None = None


class LinkedAnnouncement(BaseModel):
    id: int
    title: str

    model_config = {"from_attributes": True}


class CalendarEventResponse(CalendarEventBase):
    id: int
    end_date: date
    announcement: LinkedAnnouncement | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
