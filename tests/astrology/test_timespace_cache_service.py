from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tianji.astrology.timespace_cache import TimespaceCacheService
from tianji.core.errors import NotFoundError, ValidationError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _put(session_factory, *, cache_data, expires_at: str, now_utc: datetime = NOW):
    async with session_factory.begin() as session:
        return await TimespaceCacheService.put(
            session,
            user_id="u1",
            dimension="yearly",
            cache_key="fortune",
            period_start="2026-01-01",
            period_end="2026-12-31",
            cache_data=cache_data,
            expires_at=expires_at,
            now_utc=now_utc,
        )


async def test_put_then_get_returns_latest_payload(session_factory) -> None:
    await _put(session_factory, cache_data={"score": 1}, expires_at="2026-03-02T00:00:00Z")
    await _put(
        session_factory,
        cache_data={"score": 2, "tags": ["wealth"]},
        expires_at="2026-03-03T00:00:00Z",
        now_utc=NOW + timedelta(minutes=5),
    )

    async with session_factory() as session:
        entry = await TimespaceCacheService.get(
            session,
            user_id="u1",
            dimension="yearly",
            cache_key="fortune",
            now_utc=NOW,
        )

    assert entry.cache_data == {"score": 2, "tags": ["wealth"]}
    assert entry.is_expired is False


async def test_expired_entry_is_flagged_or_hidden(session_factory) -> None:
    await _put(session_factory, cache_data=[1, 2, 3], expires_at="2026-03-01T06:00:00Z")

    async with session_factory() as session:
        entry = await TimespaceCacheService.get(
            session,
            user_id="u1",
            dimension="yearly",
            cache_key="fortune",
            now_utc=NOW,
        )
        assert entry.is_expired is True

        with pytest.raises(NotFoundError):
            await TimespaceCacheService.get(
                session,
                user_id="u1",
                dimension="yearly",
                cache_key="fortune",
                now_utc=NOW,
                include_expired=False,
            )


async def test_put_rejects_scalar_payload(session_factory) -> None:
    with pytest.raises(ValidationError):
        await _put(session_factory, cache_data="plain text", expires_at="2026-03-02T00:00:00Z")


async def test_clean_expired_removes_only_past_entries(session_factory) -> None:
    await _put(session_factory, cache_data={"old": True}, expires_at="2026-03-01T06:00:00Z")
    async with session_factory.begin() as session:
        await TimespaceCacheService.put(
            session,
            user_id="u1",
            dimension="monthly",
            cache_key="fortune",
            period_start="2026-03-01",
            period_end="2026-03-31",
            cache_data={"fresh": True},
            expires_at="2026-04-01T00:00:00Z",
            now_utc=NOW,
        )

    async with session_factory.begin() as session:
        deleted = await TimespaceCacheService.clean_expired(session, now_utc=NOW, limit=100)

    assert deleted == 1
    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await TimespaceCacheService.get(
                session,
                user_id="u1",
                dimension="yearly",
                cache_key="fortune",
                now_utc=NOW,
            )
