"""Day x hour calendar projection of appointments.

``project`` is a pure function: it never touches the database, never mutates
the appointments it is given, and returns a fresh grid on every call. It is
total over its inputs; the ``validate_*`` helpers are for request boundaries.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from clinicbook.core import config
from clinicbook.core.errors import ValidationError
from clinicbook.models.appointment import Appointment

logger = logging.getLogger(__name__)

CalendarGrid = dict[date, dict[int, Appointment | None]]


def iterate_days(start: date, end: date) -> list[date]:
    days: list[date] = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def calendar_bounds(date_from: date, date_to: date) -> tuple[datetime, datetime]:
    """Half-open datetime range covering the calendar days ``date_from..date_to``."""
    return datetime.combine(date_from, time.min), datetime.combine(date_to + timedelta(days=1), time.min)


def validate_query_range(date_from: date, date_to: date) -> None:
    if date_from > date_to:
        raise ValidationError('date_from must not be after date_to.')
    if (date_to - date_from).days + 1 > config.MAX_QUERY_RANGE_DAYS:
        raise ValidationError(f'Date range must span {config.MAX_QUERY_RANGE_DAYS} days or fewer.')


def validate_hour_window(start_hour: int, end_hour: int) -> None:
    if not 0 <= start_hour <= end_hour <= 23:
        raise ValidationError('Hours must satisfy 0 <= start_hour <= end_hour <= 23.')


def project(
    appointments: Iterable[Appointment],
    date_range: tuple[date, date],
    hour_window: tuple[int, int],
    service_filter: int | None = None,
) -> CalendarGrid:
    start_day, end_day = date_range
    first_hour, last_hour = hour_window
    hours = range(first_hour, last_hour + 1)

    grid: CalendarGrid = {day: {hour: None for hour in hours} for day in iterate_days(start_day, end_day)}

    for appointment in appointments:
        if service_filter is not None and appointment.service_id != service_filter:
            continue

        scheduled = appointment.scheduled_time
        row = grid.get(scheduled.date())
        if row is None or scheduled.hour not in row:
            continue

        occupant = row[scheduled.hour]
        if occupant is not None and occupant is not appointment:
            # Two slots in one hour cell are normal; two records at one exact time are not.
            log = logger.warning if occupant.scheduled_time == scheduled else logger.debug
            log(
                'Calendar collision at %s %02d:00 between appointments %s and %s',
                scheduled.date(),
                scheduled.hour,
                occupant.id,
                appointment.id,
            )
        row[scheduled.hour] = appointment

    return grid
