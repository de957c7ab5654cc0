"""Appointment status state machine.

Legal moves::

    Pending   --confirm-->  Confirmed
    Pending   --cancel--->  Cancelled
    Confirmed --cancel--->  Cancelled
    Confirmed --complete->  Completed

Cancelled and Completed are terminal. Checks run in a fixed order: the
appointment must exist, the move must be legal from the current status, the
actor must be allowed to make it, and completion must not precede the
scheduled time. The write is a compare-and-swap on the status that was read,
so of two racing calls only one can succeed.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from clinicbook.core.errors import InvalidTransition, SchedulingError, TooEarly, Unauthorized
from clinicbook.directory import OrganizationDirectory
from clinicbook.models.appointment import Appointment, AppointmentStatus
from clinicbook.notifications import AppointmentEvent, NotificationDispatcher, dispatch_safely
from clinicbook.store import AppointmentStore

logger = logging.getLogger(__name__)


class Actor(str, enum.Enum):
    OWNER = 'owner'
    REQUESTER = 'requester'


@dataclass(frozen=True)
class Transition:
    name: str
    sources: frozenset[AppointmentStatus]
    target: AppointmentStatus
    allowed_actors: frozenset[Actor]
    requires_elapsed: bool = False


CONFIRM = Transition(
    name='confirm',
    sources=frozenset({AppointmentStatus.PENDING}),
    target=AppointmentStatus.CONFIRMED,
    allowed_actors=frozenset({Actor.OWNER}),
)
CANCEL = Transition(
    name='cancel',
    sources=frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}),
    target=AppointmentStatus.CANCELLED,
    allowed_actors=frozenset({Actor.OWNER, Actor.REQUESTER}),
)
COMPLETE = Transition(
    name='complete',
    sources=frozenset({AppointmentStatus.CONFIRMED}),
    target=AppointmentStatus.COMPLETED,
    allowed_actors=frozenset({Actor.OWNER}),
    requires_elapsed=True,
)

TRANSITIONS = {transition.name: transition for transition in (CONFIRM, CANCEL, COMPLETE)}


def actor_roles(actor_id: int, appointment: Appointment, owner_id: int) -> set[Actor]:
    roles: set[Actor] = set()
    if actor_id == owner_id:
        roles.add(Actor.OWNER)
    if actor_id == appointment.requester_id:
        roles.add(Actor.REQUESTER)
    return roles


class StatusTransitionEngine:
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

    def confirm(self, appointment_id: int, actor_id: int) -> Appointment:
        return self.apply(CONFIRM, appointment_id, actor_id)

    def cancel(self, appointment_id: int, actor_id: int) -> Appointment:
        return self.apply(CANCEL, appointment_id, actor_id)

    def complete(self, appointment_id: int, actor_id: int) -> Appointment:
        return self.apply(COMPLETE, appointment_id, actor_id)

    def apply(self, transition: Transition, appointment_id: int, actor_id: int) -> Appointment:
        appointment = self._store.get(appointment_id)
        current = AppointmentStatus(appointment.status)
        owner_id = self._directory.get_organization(appointment.organization_id).owner_id

        try:
            if current not in transition.sources:
                raise InvalidTransition(
                    f'Cannot {transition.name} an appointment that is {current.value}.'
                )

            if not actor_roles(actor_id, appointment, owner_id) & transition.allowed_actors:
                raise Unauthorized(f'You are not allowed to {transition.name} this appointment.')

            now = self._clock()
            if transition.requires_elapsed and now < appointment.scheduled_time:
                raise TooEarly('You can only complete the appointment after its scheduled time.')

            updated = self._store.compare_and_set_status(appointment_id, current, transition.target, now)
        except SchedulingError as exc:
            logger.info(
                'Refused %s of appointment %s by actor %s: %s',
                transition.name,
                appointment_id,
                actor_id,
                exc.code,
            )
            raise

        logger.info('Appointment %s moved %s -> %s by actor %s', appointment_id, current.value, updated.status.value, actor_id)
        dispatch_safely(self._dispatcher, AppointmentEvent.from_appointment(updated, owner_id))
        return updated
