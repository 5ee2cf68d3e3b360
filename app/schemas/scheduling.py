from datetime import date, datetime

from pydantic import BaseModel, Field


class SchedulingConfigResponse(BaseModel):
    timezone: str
    source_timezone: str
    slot_template: list[str]
    slot_duration_minutes: int
    allow_weekends: bool


class AvailableSlotsResponse(BaseModel):
    date: date
    timezone: str
    bookable: bool
    slots: list[str] = Field(default_factory=list)
    reason: str | None = None


class BookingCreateRequest(BaseModel):
    date: date
    time: str = Field(min_length=1, max_length=5)
    email: str = Field(min_length=3, max_length=320)
    topic: str = Field(default="", max_length=4000)
    name: str | None = Field(default=None, max_length=200)
    contact_number: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    referred_by: str | None = Field(default=None, max_length=200)


class BookingResponse(BaseModel):
    success: bool
    message: str
    event_id: str | None = None
    google_meet_link: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    timezone: str | None = None
