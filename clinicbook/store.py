"""Durable appointment storage.

The store is the only component that writes appointment rows. Creation is
atomic per (organization, scheduled time): an in-process lock serializes the
check-then-insert sequence and the partial unique index on active slots
rejects anything that slips past it from another process. Status changes are
compare-and-swap updates keyed on the status the caller read.
"""

import logging
from datetime import datetime
from threading import Lock

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinicbook.core.errors import ConflictError, InvalidTransition, NotFound
from clinicbook.models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

SLOT_LOCK_STRIPES = 64
_slot_locks = [Lock() for _ in range(SLOT_LOCK_STRIPES)]


def slot_lock(organization_id: int, scheduled_time: datetime) -> Lock:
    return _slot_locks[hash((organization_id, scheduled_time)) % SLOT_LOCK_STRIPES]


class AppointmentStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, appointment_id: int) -> Appointment:
        appointment = self._db.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFound(f'Appointment {appointment_id} not found.')
        return appointment

    def find_active_at(self, organization_id: int, scheduled_time: datetime) -> Appointment | None:
        return self._db.query(Appointment).filter(
            Appointment.organization_id == organization_id,
            Appointment.scheduled_time == scheduled_time,
            Appointment.status.in_(tuple(ACTIVE_STATUSES)),
        ).first()

    def find_by_request_id(self, requester_id: int, request_id: str) -> Appointment | None:
        return self._db.query(Appointment).filter(
            Appointment.requester_id == requester_id,
            Appointment.request_id == request_id,
        ).first()

    def insert_if_slot_free(self, appointment: Appointment) -> tuple[Appointment, bool]:
        """Insert ``appointment`` unless its slot is held by an active booking.

        Returns the stored record and whether this call created it. When the
        requester already holds a record with the same ``request_id``, that
        record is returned with ``False`` instead of inserting.
        """
        organization_id = appointment.organization_id
        scheduled_time = appointment.scheduled_time
        requester_id = appointment.requester_id
        request_id = appointment.request_id

        with slot_lock(organization_id, scheduled_time):
            if request_id is not None:
                existing = self.find_by_request_id(requester_id, request_id)
                if existing is not None:
                    return existing, False

            if self.find_active_at(organization_id, scheduled_time) is not None:
                raise ConflictError('This time is already booked.')

            self._db.add(appointment)
            try:
                self._db.commit()
            except IntegrityError as exc:
                self._db.rollback()
                if request_id is not None:
                    existing = self.find_by_request_id(requester_id, request_id)
                    if existing is not None:
                        return existing, False
                logger.info(
                    'Slot %s at organization %s was taken by a concurrent booking',
                    scheduled_time,
                    organization_id,
                )
                raise ConflictError('This time is already booked.') from exc

        self._db.refresh(appointment)
        return appointment, True

    def compare_and_set_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new: AppointmentStatus,
        now: datetime,
    ) -> Appointment:
        updated_rows = self._db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.status == expected,
        ).update(
            {Appointment.status: new, Appointment.updated_at: now},
            synchronize_session=False,
        )
        self._db.commit()

        if updated_rows == 0:
            raise InvalidTransition(
                f'Appointment {appointment_id} is no longer {expected.value}.'
            )

        appointment = self.get(appointment_id)
        self._db.refresh(appointment)
        return appointment

    def query_range(
        self,
        organization_id: int,
        start: datetime,
        end: datetime,
        service_id: int | None = None,
    ) -> list[Appointment]:
        query = self._db.query(Appointment).filter(
            Appointment.organization_id == organization_id,
            Appointment.scheduled_time >= start,
            Appointment.scheduled_time < end,
        )
        if service_id is not None:
            query = query.filter(Appointment.service_id == service_id)
        return query.order_by(Appointment.scheduled_time.asc(), Appointment.id.asc()).all()

    def list_for_requester(self, requester_id: int) -> list[Appointment]:
        return self._db.query(Appointment).filter(
            Appointment.requester_id == requester_id,
        ).order_by(Appointment.scheduled_time.asc(), Appointment.id.asc()).all()
