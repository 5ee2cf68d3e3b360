import logging
from datetime import date, datetime
from typing import Protocol

from app.core.config import Settings
from app.schemas.scheduling import (
    AvailableSlotsResponse,
    BookingCreateRequest,
    BookingResponse,
    SchedulingConfigResponse,
)
from app.services.availability_filter import BusyInterval, filter_free
from app.services.booking_policy import describe_unavailability
from app.services.booking_request_builder import (
    BookingFields,
    BookingRequest,
    ValidationError,
    build_booking_request,
)
from app.services.google_calendar_client import GoogleCalendarError, InsertEventResult
from app.services.slot_generator import day_bounds, generate_candidate_slots
from app.services.time_zone_projector import resolve_zone, to_local_datetime, to_local_time

logger = logging.getLogger(__name__)


class CalendarCollaborator(Protocol):
    def list_busy_intervals(
        self,
        day_start: datetime,
        day_end: datetime,
        *,
        default_timezone: str = "UTC",
    ) -> list[BusyInterval]: ...

    def insert_event(self, booking_request: BookingRequest) -> InsertEventResult: ...


class UpstreamUnavailableError(Exception):
    def __init__(self, operation: str, access: str, detail: str) -> None:
        super().__init__(f"Calendar {access} operation {operation} failed: {detail}")
        self.operation = operation
        self.access = access
        self.detail = detail


class SchedulingService:
    def __init__(
        self,
        settings: Settings,
        calendar_client: CalendarCollaborator | None = None,
    ) -> None:
        self.settings = settings
        self.calendar_client = calendar_client

    def get_config(self) -> SchedulingConfigResponse:
        return SchedulingConfigResponse(
            timezone=self.settings.slot_display_timezone,
            source_timezone=self.settings.slot_source_timezone,
            slot_template=self._display_template(),
            slot_duration_minutes=self.settings.slot_duration_minutes,
            allow_weekends=self.settings.booking_allow_weekends,
        )

    def list_available_slots(
        self,
        civil_date: date,
        *,
        today: date | None = None,
    ) -> AvailableSlotsResponse:
        display_zone = self.settings.slot_display_timezone
        reason = describe_unavailability(
            civil_date,
            today=today or self._today(),
            allow_weekends=self.settings.booking_allow_weekends,
        )
        if reason:
            return AvailableSlotsResponse(
                date=civil_date,
                timezone=display_zone,
                bookable=False,
                reason=reason,
            )

        source_zone = self.settings.slot_source_timezone
        candidates = generate_candidate_slots(
            civil_date,
            source_zone,
            self.settings.slot_template,
            self.settings.slot_duration_minutes,
        )
        day_start, day_end = day_bounds(civil_date, source_zone)
        try:
            busy_intervals = self._require_calendar_client().list_busy_intervals(
                day_start,
                day_end,
                default_timezone=source_zone,
            )
        except GoogleCalendarError as exc:
            logger.warning(
                "Busy interval lookup failed date=%s status_code=%s error=%s",
                civil_date.isoformat(),
                exc.status_code,
                str(exc),
            )
            raise UpstreamUnavailableError("list_busy_intervals", "read", str(exc)) from exc

        free_slots = filter_free(candidates, busy_intervals)
        logger.info(
            "Availability computed date=%s candidates=%s busy=%s free=%s",
            civil_date.isoformat(),
            len(candidates),
            len(busy_intervals),
            len(free_slots),
        )
        return AvailableSlotsResponse(
            date=civil_date,
            timezone=display_zone,
            bookable=True,
            slots=[to_local_time(slot.start, display_zone) for slot in free_slots],
        )

    def book_meeting(
        self,
        payload: BookingCreateRequest,
        *,
        today: date | None = None,
    ) -> BookingResponse:
        reason = describe_unavailability(
            payload.date,
            today=today or self._today(),
            allow_weekends=self.settings.booking_allow_weekends,
        )
        if reason:
            raise ValidationError(reason)
        selected_time = payload.time.strip()
        display_date = self._match_display_date(payload.date, selected_time)
        if display_date is None:
            raise ValidationError("No correct time slot selected.")

        booking_request = build_booking_request(
            display_date,
            selected_time,
            self.settings.slot_duration_minutes,
            self.settings.slot_display_timezone,
            BookingFields(
                invitee_email=payload.email,
                topic=payload.topic,
                invitee_name=payload.name,
                contact_number=payload.contact_number,
                address=payload.address,
                referred_by=payload.referred_by,
            ),
            reminder_minutes_before=self.settings.booking_reminder_minutes_before,
            conferencing_provider_key=self.settings.booking_conferencing_provider_key,
            invite_attendee=self.settings.booking_send_invites,
        )

        try:
            result = self._require_calendar_client().insert_event(booking_request)
        except GoogleCalendarError as exc:
            logger.warning(
                "Event insert failed date=%s time=%s status_code=%s error=%s",
                payload.date.isoformat(),
                selected_time,
                exc.status_code,
                str(exc),
            )
            raise UpstreamUnavailableError("insert_event", "write", str(exc)) from exc

        if not result.success:
            logger.warning(
                "Event insert rejected date=%s time=%s status_code=%s",
                payload.date.isoformat(),
                selected_time,
                result.status_code,
            )
            return BookingResponse(success=False, message="Failed to insert event")

        logger.info(
            "Event inserted event_id=%s date=%s time=%s",
            result.event_id,
            payload.date.isoformat(),
            selected_time,
        )
        return BookingResponse(
            success=True,
            message="Event inserted successfully",
            event_id=result.event_id,
            google_meet_link=result.google_meet_link,
            starts_at=booking_request.start,
            ends_at=booking_request.end,
            timezone=booking_request.time_zone,
        )

    def _display_template(self) -> list[str]:
        candidates = generate_candidate_slots(
            self._today(),
            self.settings.slot_source_timezone,
            self.settings.slot_template,
            self.settings.slot_duration_minutes,
        )
        return [
            to_local_time(candidate.start, self.settings.slot_display_timezone)
            for candidate in candidates
        ]

    def _match_display_date(self, civil_date: date, selected_time: str) -> date | None:
        # Slots are authored in the source zone; submissions arrive as display-zone times.
        candidates = generate_candidate_slots(
            civil_date,
            self.settings.slot_source_timezone,
            self.settings.slot_template,
            self.settings.slot_duration_minutes,
        )
        for candidate in candidates:
            local_start = to_local_datetime(candidate.start, self.settings.slot_display_timezone)
            if local_start.strftime("%H:%M") == selected_time:
                return local_start.date()
        return None

    def _today(self) -> date:
        return datetime.now(resolve_zone(self.settings.slot_source_timezone)).date()

    def _require_calendar_client(self) -> CalendarCollaborator:
        if self.calendar_client is None:
            raise RuntimeError("SchedulingService was created without a calendar client.")
        return self.calendar_client
