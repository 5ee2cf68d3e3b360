import http.client
import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from urllib import error, parse, request

from app.services.availability_filter import BusyInterval
from app.services.booking_request_builder import BookingRequest

logger = logging.getLogger(__name__)

_MAX_EVENT_PAGES = 20


class GoogleCalendarError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class InsertEventResult:
    success: bool
    status_code: int
    raw: dict[str, Any] = field(default_factory=dict)
    event_id: str | None = None
    google_meet_link: str | None = None


class GoogleCalendarClient:
    def __init__(
        self,
        *,
        access_token: str,
        refresh_token: str = "",
        client_id: str = "",
        client_secret: str = "",
        calendar_id: str = "primary",
        timeout_seconds: float = 10.0,
        api_base_url: str = "https://www.googleapis.com/calendar/v3",
        oauth_token_url: str = "https://oauth2.googleapis.com/token",
    ) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.calendar_id = calendar_id
        self.timeout_seconds = timeout_seconds
        self.api_base_url = api_base_url.rstrip("/")
        self.oauth_token_url = oauth_token_url

    def list_busy_intervals(
        self,
        day_start: datetime,
        day_end: datetime,
        *,
        default_timezone: str = "UTC",
    ) -> list[BusyInterval]:
        events_path = f"/calendars/{parse.quote(self.calendar_id, safe='')}/events"
        base_params: list[tuple[str, str]] = [
            ("timeMin", self._to_rfc3339(day_start)),
            ("timeMax", self._to_rfc3339(day_end)),
            ("singleEvents", "true"),
            ("orderBy", "startTime"),
            ("eventTypes", "default"),
        ]

        intervals: list[BusyInterval] = []
        page_token: str | None = None
        for _ in range(_MAX_EVENT_PAGES):
            query_params = list(base_params)
            if page_token:
                query_params.append(("pageToken", page_token))
            _, response_payload = self._request_json(
                "GET",
                f"{events_path}?{parse.urlencode(query_params)}",
            )
            raw_items = response_payload.get("items")
            if isinstance(raw_items, list):
                for raw_event in raw_items:
                    if not isinstance(raw_event, dict) or not self._blocks_time(raw_event):
                        continue
                    intervals.append(
                        BusyInterval.from_event(raw_event, default_timezone=default_timezone),
                    )
            next_token = response_payload.get("nextPageToken")
            if not isinstance(next_token, str) or not next_token.strip():
                break
            page_token = next_token.strip()
        else:
            logger.warning(
                "Google Calendar events listing truncated calendar_id=%s pages=%s",
                self.calendar_id,
                _MAX_EVENT_PAGES,
            )

        logger.info(
            "Google Calendar busy intervals loaded calendar_id=%s time_min=%s time_max=%s count=%s",
            self.calendar_id,
            self._to_rfc3339(day_start),
            self._to_rfc3339(day_end),
            len(intervals),
        )
        return intervals

    def insert_event(self, booking_request: BookingRequest) -> InsertEventResult:
        endpoint_path = f"/calendars/{parse.quote(self.calendar_id, safe='')}/events"
        query_params: list[tuple[str, str]] = [("conferenceDataVersion", "1")]
        if booking_request.attendee_emails:
            query_params.append(("sendUpdates", "all"))
        endpoint_path = f"{endpoint_path}?{parse.urlencode(query_params)}"

        status_code, response_payload = self._request_json(
            "POST",
            endpoint_path,
            payload=booking_request.to_event_payload(),
        )
        event_id = response_payload.get("id")
        if not isinstance(event_id, str) or not event_id.strip():
            return InsertEventResult(success=False, status_code=status_code, raw=response_payload)
        return InsertEventResult(
            success=200 <= status_code < 300,
            status_code=status_code,
            raw=response_payload,
            event_id=event_id,
            google_meet_link=self._extract_google_meet_link(response_payload),
        )

    def _blocks_time(self, raw_event: dict[str, Any]) -> bool:
        if str(raw_event.get("status", "")).strip().lower() == "cancelled":
            return False
        return str(raw_event.get("transparency", "")).strip().lower() != "transparent"

    def _to_rfc3339(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat().replace("+00:00", "Z")

    def _extract_google_meet_link(self, payload: dict[str, Any]) -> str | None:
        hangout_link = payload.get("hangoutLink")
        if isinstance(hangout_link, str) and hangout_link.strip():
            return hangout_link.strip()
        conference_data = payload.get("conferenceData")
        if not isinstance(conference_data, dict):
            return None
        entry_points = conference_data.get("entryPoints")
        if not isinstance(entry_points, list):
            return None
        for raw_entry in entry_points:
            if not isinstance(raw_entry, dict):
                continue
            uri = raw_entry.get("uri")
            if isinstance(uri, str) and uri.strip():
                return uri.strip()
        return None

    def _request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        if not self.access_token and self._can_refresh_access_token():
            self._refresh_access_token()

        target = f"{self.api_base_url}{path}"
        raw_payload: bytes | None = None
        if payload is not None:
            raw_payload = json.dumps(payload).encode("utf-8")

        req = request.Request(
            target,
            data=raw_payload,
            method=method,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
        )

        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                status_code = int(getattr(response, "status", 200) or 200)
                response_body = response.read()
        except TimeoutError as exc:
            raise GoogleCalendarError("Google Calendar API request timed out.") from exc
        except error.HTTPError as exc:
            if exc.code == 401 and self._can_refresh_access_token():
                try:
                    self._refresh_access_token()
                except GoogleCalendarError:
                    logger.warning("Google Calendar access token refresh failed after HTTP 401")
                else:
                    return self._request_json(method, path, payload)
            body = exc.read().decode("utf-8", errors="ignore")
            raise GoogleCalendarError(
                f"Google Calendar API HTTP {exc.code}: {body or 'empty response body'}",
                status_code=exc.code,
            ) from exc
        except error.URLError as exc:
            raise GoogleCalendarError(
                f"Google Calendar API connection error: {exc.reason}",
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise GoogleCalendarError(f"Google Calendar API connection error: {exc!r}") from exc

        try:
            parsed_body = json.loads(response_body.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise GoogleCalendarError(
                "Google Calendar API returned invalid JSON.",
                status_code=status_code,
            ) from exc

        if not isinstance(parsed_body, dict):
            raise GoogleCalendarError(
                "Google Calendar API response is not a JSON object.",
                status_code=status_code,
            )
        return status_code, parsed_body

    def _can_refresh_access_token(self) -> bool:
        return bool(
            self.refresh_token.strip()
            and self.client_id.strip()
            and self.client_secret.strip()
        )

    def _refresh_access_token(self) -> None:
        if not self._can_refresh_access_token():
            raise GoogleCalendarError(
                "Google Calendar refresh token flow is not configured.",
            )
        body = parse.urlencode(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
        ).encode("utf-8")
        req = request.Request(
            self.oauth_token_url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                response_body = response.read()
        except TimeoutError as exc:
            raise GoogleCalendarError("Google OAuth refresh request timed out.") from exc
        except error.HTTPError as exc:
            body_text = exc.read().decode("utf-8", errors="ignore")
            raise GoogleCalendarError(
                f"Google OAuth refresh HTTP {exc.code}: {body_text or 'empty response body'}",
                status_code=exc.code,
            ) from exc
        except error.URLError as exc:
            raise GoogleCalendarError(
                f"Google OAuth refresh connection error: {exc.reason}",
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise GoogleCalendarError(f"Google OAuth refresh connection error: {exc!r}") from exc

        try:
            token_payload = json.loads(response_body.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise GoogleCalendarError("Google OAuth refresh returned invalid JSON.") from exc

        if not isinstance(token_payload, dict):
            raise GoogleCalendarError("Google OAuth refresh response is not a JSON object.")
        new_access_token = token_payload.get("access_token")
        if not isinstance(new_access_token, str) or not new_access_token.strip():
            raise GoogleCalendarError("Google OAuth refresh did not include access_token.")
        self.access_token = new_access_token.strip()
        refreshed_refresh_token = token_payload.get("refresh_token")
        if isinstance(refreshed_refresh_token, str) and refreshed_refresh_token.strip():
            self.refresh_token = refreshed_refresh_token.strip()
        logger.info("Google Calendar access token refreshed calendar_id=%s", self.calendar_id)
