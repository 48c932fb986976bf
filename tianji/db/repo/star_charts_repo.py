from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.star_charts import StarChart
from tianji.db.upsert import insert_for


class StarChartsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: str) -> StarChart | None:
        stmt = (
            select(StarChart)
            .where(StarChart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert(
        session: AsyncSession,
        *,
        user_id: str,
        chart_structure: dict[str, object],
        brief_analysis_cache: dict[str, object] | None,
        now_utc: datetime,
    ) -> None:
        insert_stmt = insert_for(session, StarChart).values(
            user_id=user_id,
            chart_structure=chart_structure,
            brief_analysis_cache=brief_analysis_cache,
            created_at=now_utc,
            updated_at=now_utc,
        )
        update_values: dict[str, object] = {
            "chart_structure": insert_stmt.excluded.chart_structure,
            "updated_at": insert_stmt.excluded.updated_at,
        }
        if brief_analysis_cache is not None:
            update_values["brief_analysis_cache"] = insert_stmt.excluded.brief_analysis_cache
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[StarChart.user_id],
            set_=update_values,
        )
        await session.execute(stmt)

    @staticmethod
    async def set_brief_analysis_cache(
        session: AsyncSession,
        *,
        user_id: str,
        brief_analysis_cache: dict[str, object],
        now_utc: datetime,
    ) -> bool:
        stmt = (
            update(StarChart)
            .where(StarChart.user_id == user_id)
            .values(brief_analysis_cache=brief_analysis_cache, updated_at=now_utc)
            .returning(StarChart.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
