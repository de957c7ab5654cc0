"""Hand-off of appointment events to the notification collaborator.

Delivery and retry belong to the collaborator. The scheduling core only
builds the event after a committed change and passes it on; a failing
dispatcher never undoes the change that produced the event.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from clinicbook.models.appointment import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentEvent:
    appointment_id: int
    new_status: AppointmentStatus
    requester_id: int
    organization_owner_id: int

    @classmethod
    def from_appointment(cls, appointment: Appointment, organization_owner_id: int) -> 'AppointmentEvent':
        return cls(
            appointment_id=appointment.id,
            new_status=AppointmentStatus(appointment.status),
            requester_id=appointment.requester_id,
            organization_owner_id=organization_owner_id,
        )


class NotificationDispatcher(Protocol):
    def dispatch(self, event: AppointmentEvent) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records each event in the application log."""

    def dispatch(self, event: AppointmentEvent) -> None:
        logger.info(
            'Appointment %s is now %s (requester=%s, owner=%s)',
            event.appointment_id,
            event.new_status.value,
            event.requester_id,
            event.organization_owner_id,
        )


class RecordingNotificationDispatcher:
    """Keeps dispatched events in memory, in order."""

    def __init__(self) -> None:
        self.events: list[AppointmentEvent] = []

    def dispatch(self, event: AppointmentEvent) -> None:
        self.events.append(event)


def dispatch_safely(dispatcher: NotificationDispatcher, event: AppointmentEvent) -> None:
    try:
        dispatcher.dispatch(event)
    except Exception:
        logger.exception('Notification dispatch failed for appointment %s', event.appointment_id)
