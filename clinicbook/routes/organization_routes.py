from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_actor_id
from clinicbook.core import config
from clinicbook.core.errors import SchedulingError, Unauthorized
from clinicbook.dependencies import database_unavailable, ensure_database_ready, get_db, to_http_exception
from clinicbook.directory import OrganizationDirectory
from clinicbook.schemas import CalendarCellResponse, CalendarDayResponse, CalendarResponse, to_appointment_response
from clinicbook.scheduling.calendar import calendar_bounds, project, validate_hour_window, validate_query_range
from clinicbook.store import AppointmentStore

router = APIRouter(tags=['organizations'])


@router.get('/{organization_id}/calendar', response_model=CalendarResponse)
def get_organization_calendar(
    organization_id: int,
    date_from: date = Query(...),
    date_to: date = Query(...),
    start_hour: int = Query(default=config.CALENDAR_START_HOUR),
    end_hour: int = Query(default=config.CALENDAR_END_HOUR),
    service_id: int | None = Query(default=None),
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
):
    try:
        validate_query_range(date_from, date_to)
        validate_hour_window(start_hour, end_hour)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    ensure_database_ready()

    try:
        organization = OrganizationDirectory(db).get_organization(organization_id)
        if actor_id != organization.owner_id:
            raise Unauthorized('Only the organization owner can view its calendar.')

        start, end = calendar_bounds(date_from, date_to)
        appointments = AppointmentStore(db).query_range(organization_id, start, end)
        grid = project(appointments, (date_from, date_to), (start_hour, end_hour), service_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return CalendarResponse(
        organization_id=organization_id,
        date_from=date_from,
        date_to=date_to,
        start_hour=start_hour,
        end_hour=end_hour,
        service_id=service_id,
        days=[
            CalendarDayResponse(
                date=day,
                slots=[
                    CalendarCellResponse(
                        hour=hour,
                        appointment=to_appointment_response(appointment) if appointment is not None else None,
                    )
                    for hour, appointment in cells.items()
                ],
            )
            for day, cells in grid.items()
        ],
    )
