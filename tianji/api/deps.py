from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Request

from tianji.core.errors import UnauthenticatedError
from tianji.core.security import decode_access_token


def current_user_id(request: Request) -> str:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthenticatedError("Bearer token required")
    return decode_access_token(token.strip())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
