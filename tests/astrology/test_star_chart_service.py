from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tianji.astrology.star_charts import StarChartService
from tianji.core.errors import NotFoundError, ValidationError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
CHART = {"palaces": [{"name": "ming", "stars": ["ziwei"]}]}


async def test_save_and_get_round_trip(session_factory) -> None:
    async with session_factory.begin() as session:
        saved = await StarChartService.save(
            session,
            user_id="u1",
            chart_structure=CHART,
            brief_analysis_cache={"summary": "steady"},
            now_utc=NOW,
        )

    assert saved.chart_structure == CHART
    async with session_factory() as session:
        loaded = await StarChartService.get(session, user_id="u1")
    assert loaded.brief_analysis_cache == {"summary": "steady"}


async def test_resave_without_brief_keeps_existing_brief(session_factory) -> None:
    async with session_factory.begin() as session:
        await StarChartService.save(
            session,
            user_id="u1",
            chart_structure=CHART,
            brief_analysis_cache={"summary": "steady"},
            now_utc=NOW,
        )
    async with session_factory.begin() as session:
        saved = await StarChartService.save(
            session,
            user_id="u1",
            chart_structure={"palaces": []},
            brief_analysis_cache=None,
            now_utc=NOW + timedelta(hours=1),
        )

    assert saved.chart_structure == {"palaces": []}
    assert saved.brief_analysis_cache == {"summary": "steady"}


async def test_save_requires_chart_structure(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(ValidationError):
            await StarChartService.save(
                session,
                user_id="u1",
                chart_structure=None,
                brief_analysis_cache=None,
                now_utc=NOW,
            )


async def test_get_returns_none_without_chart(session_factory) -> None:
    async with session_factory() as session:
        assert await StarChartService.get(session, user_id="u1") is None


async def test_update_brief_analysis_requires_existing_chart(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(NotFoundError):
            await StarChartService.update_brief_analysis(
                session,
                user_id="u1",
                brief_analysis_cache={"summary": "late"},
                now_utc=NOW,
            )
