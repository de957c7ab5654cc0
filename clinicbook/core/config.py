import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

SLOT_DURATION_MINUTES = _get_int(os.getenv("SLOT_DURATION_MINUTES"), 30)
CALENDAR_START_HOUR = _get_int(os.getenv("CALENDAR_START_HOUR"), 8)
CALENDAR_END_HOUR = _get_int(os.getenv("CALENDAR_END_HOUR"), 19)
MAX_QUERY_RANGE_DAYS = _get_int(os.getenv("MAX_QUERY_RANGE_DAYS"), 92)
MAX_DESCRIPTION_LENGTH = _get_int(os.getenv("MAX_DESCRIPTION_LENGTH"), 600)

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if not 0 <= CALENDAR_START_HOUR <= CALENDAR_END_HOUR <= 23:
        raise RuntimeError("CALENDAR_START_HOUR and CALENDAR_END_HOUR must satisfy 0 <= start <= end <= 23.")
