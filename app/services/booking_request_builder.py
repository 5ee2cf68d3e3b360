from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any
from uuid import uuid4

from app.services.time_zone_projector import InvalidTimeError, to_instant, to_local_datetime

DEFAULT_REMINDER_MINUTES_BEFORE = 30
DEFAULT_CONFERENCING_PROVIDER_KEY = "hangoutsMeet"
_REMINDER_METHOD = "email"
_SUMMARY_FALLBACK = "Call"


class ValidationError(ValueError):
    pass


@dataclass(frozen=True)
class BookingFields:
    invitee_email: str | None
    topic: str | None = None
    invitee_name: str | None = None
    contact_number: str | None = None
    address: str | None = None
    referred_by: str | None = None


@dataclass(frozen=True)
class ReminderPolicy:
    method: str
    minutes_before: int


@dataclass(frozen=True)
class BookingRequest:
    start: datetime
    end: datetime
    time_zone: str
    summary: str
    description: str | None
    conferencing_provider_key: str
    conference_request_id: str
    reminder: ReminderPolicy
    attendee_emails: tuple[str, ...] = field(default_factory=tuple)

    @property
    def local_start_time(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def local_end_time(self) -> str:
        return self.end.strftime("%H:%M")

    def to_event_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "summary": self.summary,
            "start": {"dateTime": self.start.isoformat(), "timeZone": self.time_zone},
            "end": {"dateTime": self.end.isoformat(), "timeZone": self.time_zone},
            "conferenceData": {
                "createRequest": {
                    "requestId": self.conference_request_id,
                    "conferenceSolutionKey": {"type": self.conferencing_provider_key},
                },
            },
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": self.reminder.method, "minutes": self.reminder.minutes_before},
                ],
            },
        }
        if self.description:
            payload["description"] = self.description
        if self.attendee_emails:
            payload["attendees"] = [{"email": email} for email in self.attendee_emails]
        return payload


def build_booking_request(
    civil_date: date | None,
    local_start_time: str | None,
    duration_minutes: int,
    display_zone: str,
    fields: BookingFields,
    *,
    reminder_minutes_before: int = DEFAULT_REMINDER_MINUTES_BEFORE,
    conferencing_provider_key: str = DEFAULT_CONFERENCING_PROVIDER_KEY,
    invite_attendee: bool = False,
) -> BookingRequest:
    if civil_date is None:
        raise ValidationError("Booking date is required.")
    cleaned_start_time = (local_start_time or "").strip()
    if not cleaned_start_time:
        raise ValidationError("Booking time slot is required.")
    invitee_email = (fields.invitee_email or "").strip()
    if not invitee_email:
        raise ValidationError("Invitee email is required.")
    if duration_minutes <= 0:
        raise InvalidTimeError("Slot duration must be a positive number of minutes.")

    # Absolute addition then re-projection, so 12:30 + 30 gives 13:00 and midnight rolls over.
    start_instant = to_instant(civil_date, cleaned_start_time, display_zone)
    end_instant = start_instant + timedelta(minutes=duration_minutes)

    attendee_emails: tuple[str, ...] = ()
    if invite_attendee and "@" in invitee_email:
        attendee_emails = (invitee_email.lower(),)

    return BookingRequest(
        start=to_local_datetime(start_instant, display_zone),
        end=to_local_datetime(end_instant, display_zone),
        time_zone=display_zone,
        summary=derive_summary(invitee_email),
        description=_build_description(fields),
        conferencing_provider_key=conferencing_provider_key,
        conference_request_id=f"booking-{uuid4().hex}",
        reminder=ReminderPolicy(method=_REMINDER_METHOD, minutes_before=reminder_minutes_before),
        attendee_emails=attendee_emails,
    )


def derive_summary(invitee_email: str | None) -> str:
    cleaned = (invitee_email or "").strip()
    if not cleaned:
        return _SUMMARY_FALLBACK
    return _truncate(f"Call with {cleaned}", 500)


def _build_description(fields: BookingFields) -> str | None:
    lines: list[str] = []
    topic = (fields.topic or "").strip()
    if topic:
        lines.append(topic)

    contact_lines: list[str] = []
    for label, raw_value in (
        ("Name", fields.invitee_name),
        ("Email", fields.invitee_email),
        ("Contact number", fields.contact_number),
        ("Address", fields.address),
        ("Referred by", fields.referred_by),
    ):
        cleaned = (raw_value or "").strip()
        if cleaned:
            contact_lines.append(f"{label}: {cleaned}")
    if contact_lines and lines:
        lines.append("")
    lines.extend(contact_lines)

    if not lines:
        return None
    return _truncate("\n".join(lines), 8000)


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: limit - 3] + "..."
