import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinicbook.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinicbook.db")

ACTIVE_SLOT_INDEX_NAME = 'uq_appointments_active_slot'
ACTIVE_STATUS_CLAUSE = "status IN ('Pending', 'Confirmed')"


def build_engine(url: str):
    connect_args = {'check_same_thread': False} if url.startswith('sqlite') else {}
    return create_engine(url, echo=config.SQL_ECHO, connect_args=connect_args)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('description', 'ALTER TABLE appointments ADD COLUMN description VARCHAR'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
            ('request_id', 'ALTER TABLE appointments ADD COLUMN request_id VARCHAR'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    f'CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_SLOT_INDEX_NAME} '
                    f'ON appointments(organization_id, scheduled_time) WHERE {ACTIVE_STATUS_CLAUSE}'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_org_time ON appointments(organization_id, scheduled_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_requester ON appointments(requester_id, scheduled_time)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_request_id '
                    'ON appointments(requester_id, request_id)'
                )
            )

        _appointment_schema_checked = True
