import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from clinicbook.core.errors import SchedulingError, ValidationError
from clinicbook.directory import OrganizationDirectory, is_within_hours
from clinicbook.models.appointment import Appointment, AppointmentStatus
from clinicbook.notifications import AppointmentEvent, NotificationDispatcher, dispatch_safely
from clinicbook.store import AppointmentStore

logger = logging.getLogger(__name__)


def normalize_scheduled_time(value: datetime) -> datetime:
    """Drop tzinfo and sub-minute precision; times are provider wall-clock."""
    return value.replace(tzinfo=None, second=0, microsecond=0)


class BookingService:
    """Creates Pending appointments against provider hours and existing bookings."""

    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = AppointmentStore(db)
        self._directory = OrganizationDirectory(db)
        self._dispatcher = dispatcher
        self._clock = clock

    def create(
        self,
        organization_id: int,
        service_id: int,
        requester_id: int,
        scheduled_time: datetime,
        description: str | None = None,
        request_id: str | None = None,
    ) -> Appointment:
        scheduled_time = normalize_scheduled_time(scheduled_time)

        if request_id is not None:
            existing = self._store.find_by_request_id(requester_id, request_id)
            if existing is not None:
                return self._replay(existing, organization_id, service_id, scheduled_time, request_id)

        now = self._clock()
        organization = self._directory.get_organization(organization_id)

        try:
            if scheduled_time <= now:
                raise ValidationError('Appointments must be scheduled in the future.')

            if not is_within_hours(organization, scheduled_time):
                raise ValidationError('Appointment is outside the organization\'s opening hours.')

            service = self._directory.get_service(service_id)
            if service is None or service.organization_id != organization_id:
                raise ValidationError('Service does not belong to this organization.')

            appointment, created = self._store.insert_if_slot_free(
                Appointment(
                    organization_id=organization_id,
                    service_id=service_id,
                    requester_id=requester_id,
                    scheduled_time=scheduled_time,
                    description=description,
                    status=AppointmentStatus.PENDING,
                    created_at=now,
                    request_id=request_id,
                )
            )
            if not created:
                # A concurrent call with the same request id committed first.
                return self._replay(appointment, organization_id, service_id, scheduled_time, request_id)
        except SchedulingError as exc:
            logger.info(
                'Booking refused for organization %s at %s: %s',
                organization_id,
                scheduled_time,
                exc.code,
            )
            raise

        logger.info(
            'Booked appointment %s at organization %s for %s',
            appointment.id,
            organization_id,
            appointment.scheduled_time,
        )
        dispatch_safely(self._dispatcher, AppointmentEvent.from_appointment(appointment, organization.owner_id))
        return appointment

    def _replay(
        self,
        existing: Appointment,
        organization_id: int,
        service_id: int,
        scheduled_time: datetime,
        request_id: str,
    ) -> Appointment:
        """Return the record a request id already produced, without notifying again.

        The record is returned in whatever status it now has. A request id
        reused for a different organization, service or time is refused.
        """
        if (
            existing.organization_id != organization_id
            or existing.service_id != service_id
            or existing.scheduled_time != scheduled_time
        ):
            raise ValidationError('Idempotency key was already used for a different booking.')

        logger.info('Replaying booking %s for request %s', existing.id, request_id)
        return existing
