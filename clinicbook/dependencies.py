"""Request-scoped dependencies shared by the routers."""

from collections.abc import Callable
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from clinicbook.core.errors import SchedulingError
from clinicbook.database import SessionLocal, ensure_appointment_schema
from clinicbook.notifications import LoggingNotificationDispatcher, NotificationDispatcher

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

_dispatcher = LoggingNotificationDispatcher()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_dispatcher() -> NotificationDispatcher:
    return _dispatcher


def get_clock() -> Callable[[], datetime]:
    return datetime.now


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def to_http_exception(exc: SchedulingError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={'code': exc.code, 'message': exc.message},
    )
