from datetime import UTC, date, datetime, timedelta

import pytest

from app.services.slot_generator import (
    CandidateSlot,
    day_bounds,
    generate_candidate_slots,
    validate_slot_template,
)
from app.services.time_zone_projector import InvalidTimeError

_DEFAULT_TEMPLATE = ("08:00", "08:20", "08:40", "09:00", "09:20", "09:40")


def test_generate_candidate_slots_follows_template_order() -> None:
    slots = generate_candidate_slots(date(2025, 5, 12), "Europe/Paris", ["12:00", "12:30"], 30)

    assert slots == [
        CandidateSlot(
            start=datetime(2025, 5, 12, 10, 0, tzinfo=UTC),
            end=datetime(2025, 5, 12, 10, 30, tzinfo=UTC),
        ),
        CandidateSlot(
            start=datetime(2025, 5, 12, 10, 30, tzinfo=UTC),
            end=datetime(2025, 5, 12, 11, 0, tzinfo=UTC),
        ),
    ]


def test_generate_candidate_slots_is_deterministic() -> None:
    first = generate_candidate_slots(date(2025, 5, 12), "Europe/Paris", _DEFAULT_TEMPLATE, 20)
    second = generate_candidate_slots(date(2025, 5, 12), "Europe/Paris", _DEFAULT_TEMPLATE, 20)

    assert first == second


@pytest.mark.parametrize(
    "civil_date",
    [date(2025, 5, 12), date(2025, 3, 30), date(2025, 10, 26), date(2024, 2, 29)],
)
def test_generate_candidate_slots_returns_one_candidate_per_template_entry(civil_date: date) -> None:
    slots = generate_candidate_slots(civil_date, "Europe/Paris", _DEFAULT_TEMPLATE, 20)

    assert len(slots) == len(_DEFAULT_TEMPLATE)
    assert all(slot.end - slot.start == timedelta(minutes=20) for slot in slots)


def test_generate_candidate_slots_offsets_each_entry_on_dst_day() -> None:
    slots = generate_candidate_slots(date(2025, 3, 30), "Europe/Paris", ["01:30", "03:30"], 30)

    # 01:30 is still CET (+01:00), 03:30 is already CEST (+02:00).
    assert slots[0].start == datetime(2025, 3, 30, 0, 30, tzinfo=UTC)
    assert slots[1].start == datetime(2025, 3, 30, 1, 30, tzinfo=UTC)


def test_generate_candidate_slots_keeps_entry_skipped_by_spring_forward() -> None:
    template = ["01:30", "02:30", "03:30"]

    slots = generate_candidate_slots(date(2025, 3, 30), "Europe/Paris", template, 30)

    assert len(slots) == len(template)
    assert slots[0].start == datetime(2025, 3, 30, 0, 30, tzinfo=UTC)
    # 02:30 does not exist that night and takes the CET offset.
    assert slots[1].start == datetime(2025, 3, 30, 1, 30, tzinfo=UTC)
    assert slots[2].start == datetime(2025, 3, 30, 1, 30, tzinfo=UTC)


def test_generate_candidate_slots_rejects_non_positive_duration() -> None:
    with pytest.raises(InvalidTimeError):
        generate_candidate_slots(date(2025, 5, 12), "Europe/Paris", ["12:00"], 0)


def test_validate_slot_template_returns_cleaned_entries() -> None:
    assert validate_slot_template([" 12:00", "12:30 "], 30) == ("12:00", "12:30")


def test_validate_slot_template_allows_back_to_back_slots() -> None:
    assert validate_slot_template(_DEFAULT_TEMPLATE, 20) == _DEFAULT_TEMPLATE


def test_validate_slot_template_rejects_overlap_once_duration_applied() -> None:
    with pytest.raises(InvalidTimeError, match="overlaps"):
        validate_slot_template(["08:00", "08:20"], 30)


def test_validate_slot_template_rejects_unordered_entries() -> None:
    with pytest.raises(InvalidTimeError):
        validate_slot_template(["09:00", "08:00"], 20)


def test_validate_slot_template_rejects_slot_past_midnight() -> None:
    with pytest.raises(InvalidTimeError, match="midnight"):
        validate_slot_template(["23:50"], 20)


def test_validate_slot_template_rejects_empty_template() -> None:
    with pytest.raises(InvalidTimeError):
        validate_slot_template([], 20)


def test_day_bounds_cover_the_local_day() -> None:
    day_start, day_end = day_bounds(date(2025, 5, 12), "Europe/Paris")

    assert day_start == datetime(2025, 5, 11, 22, 0, tzinfo=UTC)
    assert day_end == datetime(2025, 5, 12, 22, 0, tzinfo=UTC)


def test_day_bounds_is_23_hours_on_spring_forward_day() -> None:
    day_start, day_end = day_bounds(date(2025, 3, 30), "Europe/Paris")

    assert day_end - day_start == timedelta(hours=23)
