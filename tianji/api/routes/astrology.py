from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tianji.api.deps import current_user_id, utc_now
from tianji.api.envelope import ok, to_wire
from tianji.astrology.star_charts import StarChartService
from tianji.astrology.time_assets import TimeAssetService
from tianji.astrology.timespace_cache import TimespaceCacheService
from tianji.core.config import get_settings
from tianji.db.session import SessionLocal

router = APIRouter(prefix="/api/astrology", tags=["astrology"])


class StarChartSaveRequest(BaseModel):
    chart_structure: dict[str, Any] | None = None
    brief_analysis_cache: dict[str, Any] | None = None


class BriefAnalysisUpdateRequest(BaseModel):
    brief_analysis_cache: dict[str, Any] | None = None


class TimeAssetUnlockRequest(BaseModel):
    dimension: str | None = None
    period_start: str | None = None
    period_end: str | None = None
    period_type: str | None = None
    expires_at: str | None = None
    cost_coins: int | None = Field(default=None, gt=0)


class TimespaceCacheSaveRequest(BaseModel):
    dimension: str | None = None
    cache_key: str | None = None
    cache_data: dict[str, Any] | list[Any] | None = None
    period_start: str | None = None
    period_end: str | None = None
    expires_at: str | None = None


@router.post("/star-chart")
async def save_star_chart(
    payload: StarChartSaveRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        chart = await StarChartService.save(
            session,
            user_id=user_id,
            chart_structure=payload.chart_structure,
            brief_analysis_cache=payload.brief_analysis_cache,
            now_utc=utc_now(),
        )
    return ok(to_wire(chart, camel=False), message="Star chart saved")


@router.get("/star-chart")
async def get_star_chart(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        chart = await StarChartService.get(session, user_id=user_id)
    if chart is None:
        return ok(None, message="No star chart saved yet")
    return ok(to_wire(chart, camel=False))


@router.put("/star-chart/brief-analysis")
async def update_brief_analysis(
    payload: BriefAnalysisUpdateRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        await StarChartService.update_brief_analysis(
            session,
            user_id=user_id,
            brief_analysis_cache=payload.brief_analysis_cache,
            now_utc=utc_now(),
        )
    return ok(None, message="Brief analysis cache updated")


@router.post("/time-assets/unlock")
async def unlock_time_asset(
    payload: TimeAssetUnlockRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    cost_coins = payload.cost_coins or get_settings().default_unlock_cost_coins
    async with SessionLocal.begin() as session:
        result = await TimeAssetService.unlock(
            session,
            user_id=user_id,
            dimension=payload.dimension,
            period_start=payload.period_start,
            period_end=payload.period_end,
            period_type=payload.period_type,
            expires_at=payload.expires_at,
            cost_coins=cost_coins,
            now_utc=utc_now(),
        )
    return ok(
        {
            "asset_id": result.asset.id,
            "remaining_balance": result.remaining_balance,
            "asset": to_wire(result.asset, camel=False),
        },
        message="Time asset unlocked",
    )


@router.get("/time-assets")
async def list_time_assets(
    limit: int = Query(default=50),
    offset: int = Query(default=0),
    dimension: str | None = Query(default=None),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        assets = await TimeAssetService.list_unlocked(
            session,
            user_id=user_id,
            limit=limit,
            offset=offset,
            dimension=dimension,
        )
    return ok(to_wire(assets, camel=False))


@router.get("/time-assets/check")
async def check_time_asset(
    dimension: str | None = Query(default=None),
    period_start: str | None = Query(default=None),
    period_end: str | None = Query(default=None),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        unlocked = await TimeAssetService.is_unlocked(
            session,
            user_id=user_id,
            dimension=dimension,
            period_start=period_start,
            period_end=period_end,
        )
    return ok({"is_unlocked": unlocked})


@router.post("/cache")
async def save_timespace_cache(
    payload: TimespaceCacheSaveRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        entry = await TimespaceCacheService.put(
            session,
            user_id=user_id,
            dimension=payload.dimension,
            cache_key=payload.cache_key,
            period_start=payload.period_start,
            period_end=payload.period_end,
            cache_data=payload.cache_data,
            expires_at=payload.expires_at,
            now_utc=utc_now(),
        )
    return ok(to_wire(entry, camel=False), message="Cache saved")


@router.get("/cache")
async def get_timespace_cache(
    dimension: str | None = Query(default=None),
    cache_key: str | None = Query(default=None),
    period_start: str | None = Query(default=None),
    period_end: str | None = Query(default=None),
    include_expired: bool = Query(default=True),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        entry = await TimespaceCacheService.get(
            session,
            user_id=user_id,
            dimension=dimension,
            cache_key=cache_key,
            period_start=period_start,
            period_end=period_end,
            include_expired=include_expired,
            now_utc=utc_now(),
        )
    return ok(to_wire(entry, camel=False))
