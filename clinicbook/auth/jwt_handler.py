from datetime import datetime, timedelta, timezone

import jwt

from clinicbook.core import config


class InvalidActorSubject(jwt.InvalidTokenError):
    """The token verified but its subject is not an actor id."""


def create_access_token(subject: int | str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(subject), "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )


def actor_id_from_claims(claims: dict) -> int:
    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise InvalidActorSubject("Token subject is not an actor id")
    return int(subject)
