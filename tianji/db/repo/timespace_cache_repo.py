from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Row, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.timespace_cache_entries import TimespaceCacheEntry
from tianji.db.upsert import insert_for

_ENTRY_COLUMNS = tuple(TimespaceCacheEntry.__table__.c)


class TimespaceCacheRepo:
    @staticmethod
    async def upsert(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: str,
        cache_key: str,
        period_start: date,
        period_end: date,
        cache_data: object,
        expires_at: datetime,
        now_utc: datetime,
    ) -> Row:
        insert_stmt = insert_for(session, TimespaceCacheEntry).values(
            user_id=user_id,
            dimension=dimension,
            cache_key=cache_key,
            period_start=period_start,
            period_end=period_end,
            cache_data=cache_data,
            expires_at=expires_at,
            created_at=now_utc,
            updated_at=now_utc,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[
                TimespaceCacheEntry.user_id,
                TimespaceCacheEntry.dimension,
                TimespaceCacheEntry.cache_key,
                TimespaceCacheEntry.period_start,
                TimespaceCacheEntry.period_end,
            ],
            set_={
                "cache_data": insert_stmt.excluded.cache_data,
                "expires_at": insert_stmt.excluded.expires_at,
                "updated_at": insert_stmt.excluded.updated_at,
            },
        ).returning(*_ENTRY_COLUMNS)
        result = await session.execute(stmt)
        return result.one()

    @staticmethod
    async def get_latest(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: str,
        cache_key: str,
        period_start: date | None = None,
        period_end: date | None = None,
        not_expired_at: datetime | None = None,
    ) -> Row | None:
        stmt = select(*_ENTRY_COLUMNS).where(
            TimespaceCacheEntry.user_id == user_id,
            TimespaceCacheEntry.dimension == dimension,
            TimespaceCacheEntry.cache_key == cache_key,
        )
        if period_start is not None:
            stmt = stmt.where(TimespaceCacheEntry.period_start == period_start)
        if period_end is not None:
            stmt = stmt.where(TimespaceCacheEntry.period_end == period_end)
        if not_expired_at is not None:
            stmt = stmt.where(TimespaceCacheEntry.expires_at > not_expired_at)
        stmt = stmt.order_by(
            TimespaceCacheEntry.updated_at.desc(),
            TimespaceCacheEntry.id.desc(),
        ).limit(1)
        result = await session.execute(stmt)
        return result.first()

    @staticmethod
    async def delete_expired_before(
        session: AsyncSession,
        *,
        cutoff_utc: datetime,
        limit: int,
    ) -> int:
        resolved_limit = max(1, int(limit))
        candidate_ids = (
            select(TimespaceCacheEntry.id)
            .where(TimespaceCacheEntry.expires_at <= cutoff_utc)
            .order_by(TimespaceCacheEntry.expires_at.asc(), TimespaceCacheEntry.id.asc())
            .limit(resolved_limit)
            .scalar_subquery()
        )
        stmt = (
            delete(TimespaceCacheEntry)
            .where(TimespaceCacheEntry.id.in_(candidate_ids))
            .returning(TimespaceCacheEntry.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))
