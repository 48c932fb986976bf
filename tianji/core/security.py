from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from tianji.core.config import get_settings
from tianji.core.errors import UnauthenticatedError

USER_ID_CLAIM = "sub"
MAX_USER_ID_LENGTH = 64
DEFAULT_TOKEN_TTL = timedelta(days=7)


def create_access_token(
    user_id: str,
    *,
    now_utc: datetime | None = None,
    expires_in: timedelta = DEFAULT_TOKEN_TTL,
    extra_claims: dict[str, object] | None = None,
) -> str:
    """Issues a bearer token; production tokens come from the auth service with the same claims."""
    settings = get_settings()
    issued_at = now_utc or datetime.now(timezone.utc)
    claims: dict[str, object] = dict(extra_claims or {})
    claims.update(
        {
            USER_ID_CLAIM: str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + expires_in).timestamp()),
        }
    )
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthenticatedError("Invalid or expired token") from exc

    user_id = payload.get(USER_ID_CLAIM)
    if not isinstance(user_id, str) or not user_id.strip():
        raise UnauthenticatedError("Token has no subject")
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise UnauthenticatedError("Token subject is too long")
    return user_id
