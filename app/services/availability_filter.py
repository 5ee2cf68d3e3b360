import logging
import warnings
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from app.services.slot_generator import CandidateSlot
from app.services.time_zone_projector import InvalidTimeError, resolve_zone

logger = logging.getLogger(__name__)


class MalformedBusyIntervalWarning(UserWarning):
    pass


@dataclass(frozen=True)
class BusyInterval:
    start: datetime | None
    end: datetime | None
    event_id: str | None = None

    @property
    def is_malformed(self) -> bool:
        return self.start is None or self.end is None

    @classmethod
    def from_event(
        cls,
        event: Mapping[str, Any],
        *,
        default_timezone: str = "UTC",
    ) -> "BusyInterval":
        raw_id = event.get("id")
        event_id = raw_id if isinstance(raw_id, str) and raw_id.strip() else None
        return cls(
            start=_parse_event_boundary(event.get("start"), default_timezone),
            end=_parse_event_boundary(event.get("end"), default_timezone),
            event_id=event_id,
        )


def conflicts(candidate: CandidateSlot, interval: BusyInterval) -> bool:
    # Half-open intervals: touching boundaries are not a conflict.
    if interval.is_malformed:
        return True
    return candidate.start < interval.end and candidate.end > interval.start


def filter_free(
    candidates: Sequence[CandidateSlot],
    busy: Iterable[BusyInterval],
) -> list[CandidateSlot]:
    busy_intervals = list(busy)
    malformed = [interval for interval in busy_intervals if interval.is_malformed]
    for interval in malformed:
        logger.warning(
            "Malformed busy interval treated as busy for the whole day event_id=%s start=%s end=%s",
            interval.event_id,
            interval.start,
            interval.end,
        )
        warnings.warn(
            f"Busy interval {interval.event_id or '<unknown>'} has a missing or unparsable "
            "boundary; every slot of the day is treated as busy.",
            MalformedBusyIntervalWarning,
            stacklevel=2,
        )

    return [
        candidate
        for candidate in candidates
        if not any(conflicts(candidate, interval) for interval in busy_intervals)
    ]


def _parse_event_boundary(raw_boundary: Any, default_timezone: str) -> datetime | None:
    if isinstance(raw_boundary, str):
        raw_boundary = {"dateTime": raw_boundary}
    if not isinstance(raw_boundary, Mapping):
        return None

    raw_datetime = raw_boundary.get("dateTime")
    if isinstance(raw_datetime, str) and raw_datetime.strip():
        parsed = _parse_datetime(raw_datetime)
        if parsed is not None and parsed.tzinfo is None:
            zone_name = _boundary_zone(raw_boundary, default_timezone)
            if zone_name is None:
                return None
            return parsed.replace(tzinfo=resolve_zone(zone_name)).astimezone(UTC)
        return parsed

    # All-day events carry a civil date; the day starts at local midnight.
    raw_date = raw_boundary.get("date")
    if isinstance(raw_date, str) and raw_date.strip():
        try:
            parsed_date = date.fromisoformat(raw_date.strip())
        except ValueError:
            return None
        zone_name = _boundary_zone(raw_boundary, default_timezone)
        if zone_name is None:
            return None
        local_midnight = datetime.combine(parsed_date, time(0, 0), tzinfo=resolve_zone(zone_name))
        return local_midnight.astimezone(UTC)
    return None


def _boundary_zone(raw_boundary: Mapping[str, Any], default_timezone: str) -> str | None:
    raw_zone = raw_boundary.get("timeZone")
    zone_name = raw_zone.strip() if isinstance(raw_zone, str) and raw_zone.strip() else default_timezone
    try:
        resolve_zone(zone_name)
    except InvalidTimeError:
        return None
    return zone_name


def _parse_datetime(raw_value: str) -> datetime | None:
    normalized = raw_value.strip().replace("Z", "+00:00")
    if not normalized:
        return None
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(UTC)
