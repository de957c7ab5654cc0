from datetime import date, datetime

import pytest

from clinicbook.core.errors import ValidationError
from clinicbook.models.appointment import Appointment, AppointmentStatus
from clinicbook.scheduling.calendar import (
    calendar_bounds,
    iterate_days,
    project,
    validate_hour_window,
    validate_query_range,
)


def _appointment(appointment_id: int, scheduled_time: datetime, service_id: int = 3, status=AppointmentStatus.PENDING):
    return Appointment(
        id=appointment_id,
        organization_id=7,
        service_id=service_id,
        requester_id=2,
        scheduled_time=scheduled_time,
        status=status,
        created_at=datetime(2024, 6, 1, 10, 0),
    )


def test_iterate_days_is_inclusive() -> None:
    assert iterate_days(date(2024, 6, 10), date(2024, 6, 12)) == [
        date(2024, 6, 10),
        date(2024, 6, 11),
        date(2024, 6, 12),
    ]


def test_calendar_bounds_cover_whole_last_day() -> None:
    start, end = calendar_bounds(date(2024, 6, 10), date(2024, 6, 11))

    assert start == datetime(2024, 6, 10, 0, 0)
    assert end == datetime(2024, 6, 12, 0, 0)


def test_project_builds_every_cell_empty_when_no_appointments() -> None:
    grid = project([], (date(2024, 6, 10), date(2024, 6, 11)), (8, 19))

    assert list(grid) == [date(2024, 6, 10), date(2024, 6, 11)]
    assert list(grid[date(2024, 6, 10)]) == list(range(8, 20))
    assert all(cell is None for row in grid.values() for cell in row.values())


def test_project_places_appointment_at_its_day_and_hour() -> None:
    appointment = _appointment(101, datetime(2024, 6, 10, 9, 0))

    grid = project([appointment], (date(2024, 6, 10), date(2024, 6, 12)), (8, 19))

    assert grid[date(2024, 6, 10)][9] is appointment
    placed = [cell for row in grid.values() for cell in row.values() if cell is not None]
    assert placed == [appointment]


def test_project_places_half_hour_slot_in_its_hour_cell() -> None:
    appointment = _appointment(5, datetime(2024, 6, 11, 14, 30))

    grid = project([appointment], (date(2024, 6, 10), date(2024, 6, 12)), (8, 19))

    assert grid[date(2024, 6, 11)][14] is appointment


@pytest.mark.parametrize(
    'scheduled_time',
    [
        datetime(2024, 6, 9, 9, 0),
        datetime(2024, 6, 13, 9, 0),
        datetime(2024, 6, 10, 7, 30),
        datetime(2024, 6, 10, 20, 0),
    ],
)
def test_project_omits_appointments_outside_range_or_window(scheduled_time: datetime) -> None:
    appointment = _appointment(1, scheduled_time)

    grid = project([appointment], (date(2024, 6, 10), date(2024, 6, 12)), (8, 19))

    assert all(cell is None for row in grid.values() for cell in row.values())


def test_project_includes_last_hour_of_window() -> None:
    appointment = _appointment(1, datetime(2024, 6, 10, 19, 30))

    grid = project([appointment], (date(2024, 6, 10), date(2024, 6, 10)), (8, 19))

    assert grid[date(2024, 6, 10)][19] is appointment


def test_project_applies_service_filter() -> None:
    vaccination = _appointment(1, datetime(2024, 6, 10, 9, 0), service_id=3)
    grooming = _appointment(2, datetime(2024, 6, 10, 10, 0), service_id=5)

    grid = project([vaccination, grooming], (date(2024, 6, 10), date(2024, 6, 10)), (8, 19), service_filter=5)

    assert grid[date(2024, 6, 10)][9] is None
    assert grid[date(2024, 6, 10)][10] is grooming


def test_project_collision_is_last_write_wins() -> None:
    cancelled = _appointment(1, datetime(2024, 6, 10, 9, 0), status=AppointmentStatus.CANCELLED)
    rebooked = _appointment(2, datetime(2024, 6, 10, 9, 0))

    grid = project([cancelled, rebooked], (date(2024, 6, 10), date(2024, 6, 10)), (8, 19))

    assert grid[date(2024, 6, 10)][9] is rebooked


def test_project_is_read_only_and_repeatable() -> None:
    appointment = _appointment(1, datetime(2024, 6, 10, 9, 0))
    appointments = [appointment]

    first = project(appointments, (date(2024, 6, 10), date(2024, 6, 10)), (8, 19))
    narrow = project(appointments, (date(2024, 6, 11), date(2024, 6, 11)), (8, 19))
    second = project(appointments, (date(2024, 6, 10), date(2024, 6, 10)), (8, 19))

    assert first == second
    assert first is not second
    assert narrow[date(2024, 6, 11)][9] is None
    assert appointments == [appointment]
    assert appointment.scheduled_time == datetime(2024, 6, 10, 9, 0)
    assert appointment.status == AppointmentStatus.PENDING


def test_project_with_inverted_range_is_empty() -> None:
    appointment = _appointment(1, datetime(2024, 6, 10, 9, 0))

    assert project([appointment], (date(2024, 6, 12), date(2024, 6, 10)), (8, 19)) == {}


def test_validate_query_range_rejects_inverted_range() -> None:
    with pytest.raises(ValidationError):
        validate_query_range(date(2024, 6, 12), date(2024, 6, 10))


def test_validate_query_range_rejects_overlong_range(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('clinicbook.core.config.MAX_QUERY_RANGE_DAYS', 7)

    validate_query_range(date(2024, 6, 1), date(2024, 6, 7))
    with pytest.raises(ValidationError):
        validate_query_range(date(2024, 6, 1), date(2024, 6, 8))


@pytest.mark.parametrize(('start_hour', 'end_hour'), [(-1, 10), (10, 9), (8, 24)])
def test_validate_hour_window_rejects_invalid_windows(start_hour: int, end_hour: int) -> None:
    with pytest.raises(ValidationError):
        validate_hour_window(start_hour, end_hour)
