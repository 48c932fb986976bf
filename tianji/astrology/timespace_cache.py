from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy import Row
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.astrology.rules import parse_period, validate_cache_key
from tianji.astrology.types import CacheEntry
from tianji.core.dates import ensure_utc, parse_iso_date, parse_iso_instant
from tianji.core.errors import NotFoundError, ValidationError
from tianji.db.repo.timespace_cache_repo import TimespaceCacheRepo

logger = structlog.get_logger(__name__)


def _as_entry(row: Row, *, now_utc: datetime) -> CacheEntry:
    expires_at = ensure_utc(row.expires_at)
    return CacheEntry(
        id=row.id,
        dimension=row.dimension,
        cache_key=row.cache_key,
        period_start=row.period_start,
        period_end=row.period_end,
        cache_data=row.cache_data,
        expires_at=expires_at,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        is_expired=expires_at <= now_utc,
    )


class TimespaceCacheService:
    @staticmethod
    async def put(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: object,
        cache_key: object,
        period_start: object,
        period_end: object,
        cache_data: object,
        expires_at: object,
        now_utc: datetime,
    ) -> CacheEntry:
        dimension_value, key_value = validate_cache_key(dimension, cache_key)
        start, end = parse_period(period_start, period_end)
        expires = parse_iso_instant(expires_at, field="expires_at")
        if not isinstance(cache_data, (dict, list)):
            raise ValidationError("cache_data must be a JSON object or array")

        row = await TimespaceCacheRepo.upsert(
            session,
            user_id=user_id,
            dimension=dimension_value,
            cache_key=key_value,
            period_start=start,
            period_end=end,
            cache_data=cache_data,
            expires_at=expires,
            now_utc=now_utc,
        )
        logger.info(
            "timespace_cache_saved",
            user_id=user_id,
            dimension=dimension_value,
            cache_key=key_value,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
        )
        return _as_entry(row, now_utc=now_utc)

    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: object,
        cache_key: object,
        now_utc: datetime,
        period_start: object | None = None,
        period_end: object | None = None,
        include_expired: bool = True,
    ) -> CacheEntry:
        dimension_value, key_value = validate_cache_key(dimension, cache_key)
        start = parse_iso_date(period_start, field="period_start") if period_start else None
        end = parse_iso_date(period_end, field="period_end") if period_end else None

        row = await TimespaceCacheRepo.get_latest(
            session,
            user_id=user_id,
            dimension=dimension_value,
            cache_key=key_value,
            period_start=start,
            period_end=end,
            not_expired_at=None if include_expired else now_utc,
        )
        if row is None:
            raise NotFoundError("Cache entry not found or expired")
        return _as_entry(row, now_utc=now_utc)

    @staticmethod
    async def clean_expired(session: AsyncSession, *, now_utc: datetime, limit: int) -> int:
        return await TimespaceCacheRepo.delete_expired_before(session, cutoff_utc=now_utc, limit=limit)
