from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import delete, select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.usage_counters import UsageCounter
from tianji.db.upsert import insert_for


class UsageRepo:
    @staticmethod
    async def get_count(
        session: AsyncSession,
        *,
        user_id: str,
        feature: str,
        usage_date: date,
    ) -> int:
        stmt = select(UsageCounter.count).where(
            UsageCounter.user_id == user_id,
            UsageCounter.feature == feature,
            UsageCounter.usage_date == usage_date,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def increment(
        session: AsyncSession,
        *,
        user_id: str,
        feature: str,
        usage_date: date,
        metadata: dict[str, object] | None,
        now_utc: datetime,
        limit: int | None = None,
    ) -> int | None:
        """Returns the new count, or None when the counter is already at the limit."""
        insert_stmt = insert_for(session, UsageCounter).values(
            user_id=user_id,
            feature=feature,
            usage_date=usage_date,
            count=1,
            last_metadata=metadata,
            updated_at=now_utc,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[UsageCounter.user_id, UsageCounter.feature, UsageCounter.usage_date],
            set_={
                "count": UsageCounter.count + 1,
                "last_metadata": insert_stmt.excluded.last_metadata,
                "updated_at": insert_stmt.excluded.updated_at,
            },
            where=(UsageCounter.count < limit) if limit is not None else None,
        ).returning(UsageCounter.count)
        result = await session.execute(stmt)
        count = result.scalar_one_or_none()
        return None if count is None else int(count)

    @staticmethod
    async def delete_before(
        session: AsyncSession,
        *,
        before_date: date,
        limit: int,
    ) -> int:
        resolved_limit = max(1, int(limit))
        candidate_keys = (
            select(UsageCounter.user_id, UsageCounter.feature, UsageCounter.usage_date)
            .where(UsageCounter.usage_date < before_date)
            .order_by(UsageCounter.usage_date.asc())
            .limit(resolved_limit)
        )
        stmt = (
            delete(UsageCounter)
            .where(
                tuple_(UsageCounter.user_id, UsageCounter.feature, UsageCounter.usage_date).in_(
                    candidate_keys
                )
            )
            .returning(UsageCounter.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))
