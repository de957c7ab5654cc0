import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinicbook.auth import jwt_handler

security = HTTPBearer()


def get_current_actor_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> int:
    try:
        claims = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    try:
        return jwt_handler.actor_id_from_claims(claims)
    except jwt_handler.InvalidActorSubject as exc:
        raise HTTPException(status_code=401, detail="Invalid token subject") from exc
