from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.time_asset_unlocks import TimeAssetUnlock


class TimeAssetsRepo:
    @staticmethod
    async def exists_for_period(
        session: AsyncSession,
        *,
        user_id: str,
        dimension: str,
        period_start: date,
        period_end: date,
    ) -> bool:
        stmt = (
            select(TimeAssetUnlock.id)
            .where(
                TimeAssetUnlock.user_id == user_id,
                TimeAssetUnlock.dimension == dimension,
                TimeAssetUnlock.period_start == period_start,
                TimeAssetUnlock.period_end == period_end,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create(session: AsyncSession, *, unlock: TimeAssetUnlock) -> TimeAssetUnlock:
        session.add(unlock)
        await session.flush()
        return unlock

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int,
        offset: int,
        dimension: str | None = None,
    ) -> list[TimeAssetUnlock]:
        stmt = select(TimeAssetUnlock).where(TimeAssetUnlock.user_id == user_id)
        if dimension is not None:
            stmt = stmt.where(TimeAssetUnlock.dimension == dimension)
        stmt = (
            stmt.order_by(TimeAssetUnlock.created_at.desc(), TimeAssetUnlock.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
