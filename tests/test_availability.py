"""Tests for slot arithmetic and the availability checker."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from vetflow.core.exceptions import NotFoundException, ValidationException
from vetflow.scheduling.availability import (
    AvailabilityChecker,
    find_conflicts,
    freeing_statuses,
    parse_start,
    slot_end,
    slots_overlap,
    validate_duration,
)

NINE = datetime(2030, 5, 6, 9, 0, tzinfo=UTC)


def _appointment(appointment_id: int, start: datetime, duration: int = 30, status: str = "scheduled"):
    return {
        "id": appointment_id,
        "scheduled_at": start,
        "duration_minutes": duration,
        "status": status,
    }


def test_back_to_back_slots_do_not_overlap():
    """A slot ending at 09:30 leaves 09:30 free."""
    end = slot_end(NINE, 30)
    assert not slots_overlap(NINE, end, end, end + timedelta(minutes=30))
    assert find_conflicts([_appointment(1, NINE)], NINE + timedelta(minutes=30), 30) == []


def test_partial_overlap_is_a_conflict():
    existing = [_appointment(1, NINE)]
    conflicts = find_conflicts(existing, NINE + timedelta(minutes=15), 30)
    assert [c["id"] for c in conflicts] == [1]


def test_containing_slot_is_a_conflict():
    existing = [_appointment(1, NINE + timedelta(minutes=10), 15)]
    conflicts = find_conflicts(existing, NINE, 60)
    assert [c["id"] for c in conflicts] == [1]


def test_cancelled_appointments_free_their_slot():
    existing = [_appointment(1, NINE, status="cancelled")]
    assert find_conflicts(existing, NINE, 30) == []


def test_no_show_blocks_slot_unless_configured():
    existing = [_appointment(1, NINE, status="no_show")]
    assert [c["id"] for c in find_conflicts(existing, NINE, 30)] == [1]
    assert find_conflicts(existing, NINE, 30, ignored_statuses=freeing_statuses(True)) == []


def test_completed_and_in_progress_still_occupy_slot():
    existing = [
        _appointment(1, NINE, status="completed"),
        _appointment(2, NINE + timedelta(minutes=30), status="in_progress"),
    ]
    conflicts = find_conflicts(existing, NINE, 60)
    assert [c["id"] for c in conflicts] == [1, 2]


def test_excluded_appointment_never_conflicts_with_itself():
    existing = [_appointment(7, NINE)]
    assert find_conflicts(existing, NINE + timedelta(minutes=15), 30, exclude_appointment_id=7) == []


def test_conflicts_are_ordered_by_start_time():
    existing = [
        _appointment(3, NINE + timedelta(minutes=45)),
        _appointment(1, NINE),
        _appointment(2, NINE + timedelta(minutes=20), 15),
    ]
    conflicts = find_conflicts(existing, NINE, 120)
    assert [c["id"] for c in conflicts] == [1, 2, 3]


def test_mixed_timezones_are_compared_in_utc():
    plus_two = timezone(timedelta(hours=2))
    existing = [_appointment(1, datetime(2030, 5, 6, 11, 0, tzinfo=plus_two))]
    assert [c["id"] for c in find_conflicts(existing, NINE, 30)] == [1]
    # Naive datetimes are read as UTC
    assert [c["id"] for c in find_conflicts(existing, datetime(2030, 5, 6, 9, 15), 30)] == [1]


def test_parse_start_accepts_iso_strings():
    assert parse_start("2030-05-06T09:00:00Z") == NINE
    assert parse_start("2030-05-06T11:00:00+02:00") == NINE


@pytest.mark.parametrize("value", ["tomorrow", "", None, 1234])
def test_parse_start_rejects_malformed_values(value):
    with pytest.raises(ValidationException):
        parse_start(value)


@pytest.mark.parametrize("value", [0, 14, 241, -30, 30.5, "30", True])
def test_validate_duration_rejects_out_of_range(value):
    with pytest.raises(ValidationException):
        validate_duration(value)


@pytest.mark.parametrize("value", [15, 30, 240])
def test_validate_duration_accepts_bounds(value):
    assert validate_duration(value) == value


@pytest.mark.asyncio
async def test_checker_reports_conflicts(memory_store):
    booked = memory_store.add_appointment(1, NINE)
    checker = AvailabilityChecker(memory_store)

    conflicts = await checker.get_conflicts(1, NINE + timedelta(minutes=15), 30)

    assert [c["id"] for c in conflicts] == [booked["id"]]
    assert await checker.is_available(1, NINE + timedelta(minutes=15), 30) is False


@pytest.mark.asyncio
async def test_checker_availability_matches_conflicts(memory_store):
    memory_store.add_appointment(1, NINE)
    memory_store.add_appointment(1, NINE + timedelta(hours=2), 60)
    checker = AvailabilityChecker(memory_store)

    for offset in range(0, 240, 15):
        start = NINE + timedelta(minutes=offset)
        conflicts = await checker.get_conflicts(1, start, 45)
        assert await checker.is_available(1, start, 45) == (not conflicts)


@pytest.mark.asyncio
async def test_checker_finds_long_appointment_started_earlier(memory_store):
    long_one = memory_store.add_appointment(1, NINE - timedelta(hours=3), 240)
    checker = AvailabilityChecker(memory_store)

    conflicts = await checker.get_conflicts(1, NINE + timedelta(minutes=30), 15)

    assert [c["id"] for c in conflicts] == [long_one["id"]]


@pytest.mark.asyncio
async def test_checker_ignores_other_practitioners(memory_store):
    memory_store.add_practitioner(2)
    memory_store.add_appointment(2, NINE)
    checker = AvailabilityChecker(memory_store)

    assert await checker.is_available(1, NINE, 30) is True


@pytest.mark.asyncio
async def test_checker_unknown_practitioner(memory_store):
    checker = AvailabilityChecker(memory_store)
    with pytest.raises(NotFoundException):
        await checker.get_conflicts(99, NINE, 30)


@pytest.mark.asyncio
async def test_checker_rejects_inactive_or_non_vet_practitioner(memory_store):
    memory_store.add_practitioner(2, is_active=False)
    memory_store.add_practitioner(3, role="assistant")
    checker = AvailabilityChecker(memory_store)

    with pytest.raises(NotFoundException):
        await checker.is_available(2, NINE, 30)
    with pytest.raises(NotFoundException):
        await checker.is_available(3, NINE, 30)


@pytest.mark.asyncio
async def test_checker_validates_input(memory_store):
    checker = AvailabilityChecker(memory_store)
    with pytest.raises(ValidationException):
        await checker.get_conflicts(0, NINE, 30)
    with pytest.raises(ValidationException):
        await checker.get_conflicts(1, "not-a-date", 30)
    with pytest.raises(ValidationException):
        await checker.get_conflicts(1, NINE, 500)


@pytest.mark.asyncio
async def test_checker_no_show_policy(memory_store):
    memory_store.add_appointment(1, NINE, status="no_show")

    assert await AvailabilityChecker(memory_store).is_available(1, NINE, 30) is False
    assert await AvailabilityChecker(memory_store, no_show_frees_slot=True).is_available(1, NINE, 30)
