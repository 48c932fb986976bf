from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tianji.astrology.types import StarChartView
from tianji.core.dates import ensure_utc
from tianji.core.errors import NotFoundError, ValidationError
from tianji.db.repo.star_charts_repo import StarChartsRepo


class StarChartService:
    @staticmethod
    async def save(
        session: AsyncSession,
        *,
        user_id: str,
        chart_structure: object,
        brief_analysis_cache: object | None,
        now_utc: datetime,
    ) -> StarChartView:
        if not isinstance(chart_structure, dict) or not chart_structure:
            raise ValidationError("chart_structure is required")
        if brief_analysis_cache is not None and not isinstance(brief_analysis_cache, dict):
            raise ValidationError("brief_analysis_cache must be an object")

        await StarChartsRepo.upsert(
            session,
            user_id=user_id,
            chart_structure=chart_structure,
            brief_analysis_cache=brief_analysis_cache,
            now_utc=now_utc,
        )
        chart = await StarChartService.get(session, user_id=user_id)
        if chart is None:
            raise NotFoundError("Star chart not found")
        return chart

    @staticmethod
    async def get(session: AsyncSession, *, user_id: str) -> StarChartView | None:
        chart = await StarChartsRepo.get_by_user_id(session, user_id)
        if chart is None:
            return None
        return StarChartView(
            chart_structure=chart.chart_structure,
            brief_analysis_cache=chart.brief_analysis_cache,
            created_at=ensure_utc(chart.created_at),
            updated_at=ensure_utc(chart.updated_at),
        )

    @staticmethod
    async def update_brief_analysis(
        session: AsyncSession,
        *,
        user_id: str,
        brief_analysis_cache: object,
        now_utc: datetime,
    ) -> None:
        if not isinstance(brief_analysis_cache, dict):
            raise ValidationError("brief_analysis_cache must be an object")
        updated = await StarChartsRepo.set_brief_analysis_cache(
            session,
            user_id=user_id,
            brief_analysis_cache=brief_analysis_cache,
            now_utc=now_utc,
        )
        if not updated:
            raise NotFoundError("Star chart not found")
