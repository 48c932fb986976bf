from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from tianji.core.config import get_settings
from tianji.core.errors import UnauthenticatedError
from tianji.core.security import create_access_token, decode_access_token


def test_token_round_trip_returns_subject() -> None:
    assert decode_access_token(create_access_token("user-42")) == "user-42"


def test_expired_token_is_rejected() -> None:
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    token = create_access_token("user-42", now_utc=issued, expires_in=timedelta(hours=1))

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)


def test_token_signed_with_other_secret_is_rejected() -> None:
    token = jwt.encode({"sub": "user-42"}, "another-secret", algorithm="HS256")

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)


def test_token_without_subject_is_rejected() -> None:
    settings = get_settings()
    token = jwt.encode({"role": "user"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)
