from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from app.services.time_zone_projector import (
    InvalidTimeError,
    parse_local_time,
    resolve_zone,
    to_instant,
)


@dataclass(frozen=True)
class CandidateSlot:
    start: datetime
    end: datetime


def generate_candidate_slots(
    civil_date: date,
    source_zone: str,
    slot_template: Sequence[str],
    duration_minutes: int,
) -> list[CandidateSlot]:
    # Each entry gets its own offset lookup so DST transition days stay correct.
    duration = _to_duration(duration_minutes)
    candidates: list[CandidateSlot] = []
    for local_time in slot_template:
        start = to_instant(civil_date, local_time, source_zone)
        candidates.append(CandidateSlot(start=start, end=start + duration))
    return candidates


def validate_slot_template(slot_template: Sequence[str], duration_minutes: int) -> tuple[str, ...]:
    """Check that template entries are well-formed, increasing and non-overlapping.

    Returns the cleaned entries. Overlap is checked on wall-clock minutes, which is
    what the template author wrote; an entry whose slot would run past midnight is
    rejected as well.
    """
    duration = _to_duration(duration_minutes)
    cleaned_entries: list[str] = []
    previous_end_minutes: int | None = None
    for raw_entry in slot_template:
        cleaned = raw_entry.strip()
        parsed = parse_local_time(cleaned)
        start_minutes = parsed.hour * 60 + parsed.minute
        end_minutes = start_minutes + int(duration.total_seconds() // 60)
        if previous_end_minutes is not None and start_minutes < previous_end_minutes:
            raise InvalidTimeError(
                f"Slot template entry {cleaned} overlaps or precedes the previous slot.",
            )
        if end_minutes > 24 * 60:
            raise InvalidTimeError(f"Slot template entry {cleaned} runs past midnight.")
        cleaned_entries.append(cleaned)
        previous_end_minutes = end_minutes
    if not cleaned_entries:
        raise InvalidTimeError("Slot template must contain at least one entry.")
    return tuple(cleaned_entries)


def day_bounds(civil_date: date, zone: str) -> tuple[datetime, datetime]:
    zone_info = resolve_zone(zone)
    day_start = datetime.combine(civil_date, time(0, 0), tzinfo=zone_info)
    next_day_start = datetime.combine(civil_date + timedelta(days=1), time(0, 0), tzinfo=zone_info)
    return day_start.astimezone(UTC), next_day_start.astimezone(UTC)


def _to_duration(duration_minutes: int) -> timedelta:
    if isinstance(duration_minutes, bool) or int(duration_minutes) <= 0:
        raise InvalidTimeError("Slot duration must be a positive number of minutes.")
    return timedelta(minutes=int(duration_minutes))
