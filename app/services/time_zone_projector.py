import re
from datetime import UTC, date, datetime, time, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_LOCAL_TIME_PATTERN = re.compile(r"^(?P<hour>[01]\d|2[0-3]):(?P<minute>[0-5]\d)$")


class InvalidTimeError(ValueError):
    pass


def resolve_zone(zone: str) -> tzinfo:
    cleaned = (zone or "").strip()
    if not cleaned:
        raise InvalidTimeError("Time zone identifier is empty.")
    if cleaned.upper() in {"UTC", "GMT"}:
        return UTC
    try:
        return ZoneInfo(cleaned)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimeError(f"Unknown time zone: {cleaned!r}.") from exc


def parse_local_time(value: str) -> time:
    match = _LOCAL_TIME_PATTERN.match((value or "").strip())
    if not match:
        raise InvalidTimeError(f"Local time must use HH:mm format, got {value!r}.")
    return time(int(match.group("hour")), int(match.group("minute")))


def to_instant(civil_date: date, local_time: str, zone: str) -> datetime:
    """Interpret a wall-clock time on ``civil_date`` in ``zone`` as a UTC instant.

    The offset is looked up for that specific date, so daylight-saving days are
    handled per call. Ambiguous and skipped wall times both use the offset in
    force before the transition (``fold=0``), so 02:30 on a spring-forward day
    in Europe/Paris lands on 01:30 UTC.
    """
    zone_info = resolve_zone(zone)
    wall_time = parse_local_time(local_time)
    local_value = datetime.combine(civil_date, wall_time, tzinfo=zone_info)
    return local_value.astimezone(UTC)


def to_local_time(instant: datetime, zone: str) -> str:
    zone_info = resolve_zone(zone)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(zone_info).strftime("%H:%M")


def to_local_datetime(instant: datetime, zone: str) -> datetime:
    zone_info = resolve_zone(zone)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(zone_info)
