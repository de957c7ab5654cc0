import os
from datetime import datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinicbook.database import Base  # noqa: E402
from clinicbook.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from clinicbook.models.organization import Organization, Service  # noqa: E402
from clinicbook.models.user import User  # noqa: E402
from clinicbook.notifications import RecordingNotificationDispatcher  # noqa: E402

OWNER_ID = 1
REQUESTER_ID = 2
STRANGER_ID = 3
OTHER_OWNER_ID = 4

ORGANIZATION_ID = 7
SERVICE_ID = 3
OTHER_ORGANIZATION_ID = 8
OTHER_SERVICE_ID = 4
SECOND_SERVICE_ID = 5


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def seed_directory(db) -> None:
    db.add_all([
        User(id=OWNER_ID, email='owner@clinic.example', role='user'),
        User(id=REQUESTER_ID, email='pet.owner@example.com', role='user'),
        User(id=STRANGER_ID, email='stranger@example.com', role='user'),
        User(id=OTHER_OWNER_ID, email='owner@other.example', role='user'),
    ])
    db.add_all([
        Organization(id=ORGANIZATION_ID, name='Happy Paws Clinic', owner_id=OWNER_ID, open_time=time(8, 0), close_time=time(19, 0)),
        Organization(id=OTHER_ORGANIZATION_ID, name='Other Vet', owner_id=OTHER_OWNER_ID, open_time=time(9, 0), close_time=time(17, 0)),
    ])
    db.add_all([
        Service(id=SERVICE_ID, organization_id=ORGANIZATION_ID, name='Vaccination'),
        Service(id=SECOND_SERVICE_ID, organization_id=ORGANIZATION_ID, name='Grooming'),
        Service(id=OTHER_SERVICE_ID, organization_id=OTHER_ORGANIZATION_ID, name='Checkup'),
    ])
    db.commit()


def add_appointment(
    db,
    scheduled_time: datetime,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    *,
    appointment_id: int | None = None,
    organization_id: int = ORGANIZATION_ID,
    service_id: int = SERVICE_ID,
    requester_id: int = REQUESTER_ID,
) -> Appointment:
    appointment = Appointment(
        id=appointment_id,
        organization_id=organization_id,
        service_id=service_id,
        requester_id=requester_id,
        scheduled_time=scheduled_time,
        status=status,
        created_at=datetime(2024, 6, 1, 10, 0),
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


@pytest.fixture
def appointment_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    seed_directory(db)
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'scheduling.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = factory()
    try:
        seed_directory(db)
    finally:
        db.close()

    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def dispatcher():
    return RecordingNotificationDispatcher()
