"""Appointment model definitions."""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, text
from clinicbook.database import ACTIVE_SLOT_INDEX_NAME, ACTIVE_STATUS_CLAUSE, Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(Base):
    """Represents a booked slot with a provider."""
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one Pending/Confirmed appointment per organization and exact time.
        Index(
            ACTIVE_SLOT_INDEX_NAME,
            "organization_id",
            "scheduled_time",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
        Index("idx_appointments_org_time", "organization_id", "scheduled_time"),
        Index("idx_appointments_requester", "requester_id", "scheduled_time"),
        Index("uq_appointments_request_id", "requester_id", "request_id", unique=True),
    )

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    scheduled_time = Column(DateTime, nullable=False)
    description = Column(String, nullable=True)
    status = Column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            values_callable=lambda statuses: [status.value for status in statuses],
            length=16,
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    request_id = Column(String, nullable=True)
