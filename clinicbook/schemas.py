from datetime import date, datetime, timedelta

from pydantic import BaseModel, field_validator

from clinicbook.core import config
from clinicbook.models.appointment import Appointment, AppointmentStatus


class CreateAppointmentRequest(BaseModel):
    organization_id: int
    service_id: int
    scheduled_time: datetime
    description: str | None = None

    @field_validator('scheduled_time')
    @classmethod
    def validate_scheduled_time(cls, value: datetime) -> datetime:
        # Times are already in the provider's local clock; any offset is discarded.
        return value.replace(tzinfo=None)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {config.MAX_DESCRIPTION_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    organization_id: int
    service_id: int
    requester_id: int
    scheduled_time: datetime
    end_time: datetime
    duration_minutes: int
    description: str | None = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CalendarCellResponse(BaseModel):
    hour: int
    appointment: AppointmentResponse | None = None


class CalendarDayResponse(BaseModel):
    date: date
    slots: list[CalendarCellResponse]


class CalendarResponse(BaseModel):
    organization_id: int
    date_from: date
    date_to: date
    start_hour: int
    end_hour: int
    service_id: int | None = None
    days: list[CalendarDayResponse]


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        organization_id=appointment.organization_id,
        service_id=appointment.service_id,
        requester_id=appointment.requester_id,
        scheduled_time=appointment.scheduled_time,
        end_time=appointment.scheduled_time + timedelta(minutes=config.SLOT_DURATION_MINUTES),
        duration_minutes=config.SLOT_DURATION_MINUTES,
        description=appointment.description,
        status=appointment.status,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
    )
