import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import Settings, get_settings
from app.schemas.scheduling import (
    AvailableSlotsResponse,
    BookingCreateRequest,
    BookingResponse,
    SchedulingConfigResponse,
)
from app.services.booking_request_builder import ValidationError
from app.services.google_calendar_client import GoogleCalendarClient
from app.services.scheduling_service import (
    CalendarCollaborator,
    SchedulingService,
    UpstreamUnavailableError,
)
from app.services.time_zone_projector import InvalidTimeError

router = APIRouter(prefix="/scheduling", tags=["scheduling"])
logger = logging.getLogger(__name__)


def get_calendar_client(settings: Settings = Depends(get_settings)) -> CalendarCollaborator:
    if not settings.google_calendar_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=(
                "Google Calendar is not configured. "
                "Define GOOGLE_CALENDAR_API_TOKEN or GOOGLE_CALENDAR_REFRESH_TOKEN, "
                "GOOGLE_CALENDAR_CLIENT_ID and GOOGLE_CALENDAR_CLIENT_SECRET."
            ),
        )
    return GoogleCalendarClient(
        access_token=settings.google_calendar_api_token,
        refresh_token=settings.google_calendar_refresh_token,
        client_id=settings.google_calendar_client_id,
        client_secret=settings.google_calendar_client_secret,
        calendar_id=settings.google_calendar_id,
        timeout_seconds=settings.google_calendar_api_timeout_seconds,
    )


def get_scheduling_service(
    settings: Settings = Depends(get_settings),
    calendar_client: CalendarCollaborator = Depends(get_calendar_client),
) -> SchedulingService:
    return SchedulingService(settings, calendar_client)


@router.get("/config", response_model=SchedulingConfigResponse)
def get_scheduling_config(settings: Settings = Depends(get_settings)) -> SchedulingConfigResponse:
    try:
        return SchedulingService(settings).get_config()
    except Exception:
        logger.exception("Scheduling config lookup failed")
        raise


@router.get("/slots", response_model=AvailableSlotsResponse)
def get_slots(
    day: date = Query(..., alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
) -> AvailableSlotsResponse:
    try:
        return service.list_available_slots(day)
    except UpstreamUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No slots could be loaded, try again.",
        ) from exc
    except Exception:
        logger.exception("Slot lookup failed date=%s", day.isoformat())
        raise


@router.post(
    "/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    payload: BookingCreateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingResponse:
    try:
        response = service.book_meeting(payload)
    except (ValidationError, InvalidTimeError) as exc:
        logger.warning(
            "Booking rejected date=%s time=%s detail=%s",
            payload.date.isoformat(),
            payload.time,
            str(exc),
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to insert event, the calendar is unavailable.",
        ) from exc
    except Exception:
        logger.exception(
            "Booking failed date=%s time=%s",
            payload.date.isoformat(),
            payload.time,
        )
        raise

    if not response.success:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=response.message,
        )
    return response
