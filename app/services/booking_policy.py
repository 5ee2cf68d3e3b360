from datetime import date

_WEEKEND_DAYS = frozenset({5, 6})


def describe_unavailability(
    civil_date: date,
    *,
    today: date,
    allow_weekends: bool = False,
) -> str | None:
    # Only dates strictly after today are offerable.
    if civil_date <= today:
        return "Meetings can only be booked from tomorrow onwards."
    if not allow_weekends and civil_date.weekday() in _WEEKEND_DAYS:
        return "Meetings are not offered on weekends."
    return None


def is_offerable_date(
    civil_date: date,
    *,
    today: date,
    allow_weekends: bool = False,
) -> bool:
    return describe_unavailability(civil_date, today=today, allow_weekends=allow_weekends) is None
