import logging
from collections.abc import Callable
from datetime import date, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_actor_id
from clinicbook.core.errors import SchedulingError, Unauthorized
from clinicbook.dependencies import (
    database_unavailable,
    ensure_database_ready,
    get_clock,
    get_db,
    get_dispatcher,
    to_http_exception,
)
from clinicbook.directory import OrganizationDirectory
from clinicbook.notifications import NotificationDispatcher
from clinicbook.schemas import AppointmentResponse, CreateAppointmentRequest, to_appointment_response
from clinicbook.scheduling.booking import BookingService
from clinicbook.scheduling.calendar import calendar_bounds, validate_query_range
from clinicbook.scheduling.transitions import CANCEL, COMPLETE, CONFIRM, StatusTransitionEngine, Transition
from clinicbook.store import AppointmentStore

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

MAX_IDEMPOTENCY_KEY_LENGTH = 128


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    idempotency_key: str | None = Header(default=None, alias='Idempotency-Key'),
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Book a slot for the calling actor.

    Repeating a request with the same ``Idempotency-Key`` returns the booking
    the key first produced, as it is now (a since-cancelled booking comes back
    cancelled), and sends no second notification. Reusing a key for a
    different organization, service or time is a 400.
    """
    request_id = (idempotency_key or '').strip() or None
    if request_id is not None and len(request_id) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                'code': 'validation_error',
                'message': f'Idempotency-Key must be {MAX_IDEMPOTENCY_KEY_LENGTH} characters or fewer.',
            },
        )

    ensure_database_ready()

    try:
        appointment = BookingService(db, dispatcher, clock).create(
            organization_id=data.organization_id,
            service_id=data.service_id,
            requester_id=actor_id,
            scheduled_time=data.scheduled_time,
            description=data.description,
            request_id=request_id,
        )
        return to_appointment_response(appointment)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure while booking an appointment')
        raise database_unavailable() from exc


@router.get('', response_model=list[AppointmentResponse])
def query_appointments(
    organization_id: int = Query(...),
    date_from: date = Query(...),
    date_to: date = Query(...),
    service_id: int | None = Query(default=None),
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
):
    del actor_id

    try:
        validate_query_range(date_from, date_to)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc

    ensure_database_ready()

    try:
        start, end = calendar_bounds(date_from, date_to)
        appointments = AppointmentStore(db).query_range(organization_id, start, end, service_id)
        return [to_appointment_response(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = AppointmentStore(db).list_for_requester(actor_id)
        return [to_appointment_response(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = AppointmentStore(db).get(appointment_id)
        owner_id = OrganizationDirectory(db).get_organization(appointment.organization_id).owner_id
        if actor_id not in {appointment.requester_id, owner_id}:
            raise Unauthorized('Only the requester or the organization owner can view this appointment.')
        return to_appointment_response(appointment)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def _apply_transition(
    transition: Transition,
    appointment_id: int,
    actor_id: int,
    db: Session,
    dispatcher: NotificationDispatcher,
    clock: Callable[[], datetime],
) -> AppointmentResponse:
    ensure_database_ready()

    try:
        appointment = StatusTransitionEngine(db, dispatcher, clock).apply(transition, appointment_id, actor_id)
        return to_appointment_response(appointment)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure during %s of appointment %s', transition.name, appointment_id)
        raise database_unavailable() from exc


@router.put('/{appointment_id}/confirm', response_model=AppointmentResponse)
def confirm_appointment(
    appointment_id: int,
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return _apply_transition(CONFIRM, appointment_id, actor_id, db, dispatcher, clock)


@router.put('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return _apply_transition(CANCEL, appointment_id, actor_id, db, dispatcher, clock)


@router.put('/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    actor_id: int = Depends(get_current_actor_id),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return _apply_transition(COMPLETE, appointment_id, actor_id, db, dispatcher, clock)
