from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tianji.api.deps import current_user_id, utc_now
from tianji.api.envelope import ok, to_wire
from tianji.db.session import SessionLocal
from tianji.economy.subscriptions.service import SubscriptionService
from tianji.economy.subscriptions.types import UsageResult

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


class SubscriptionCreateRequest(BaseModel):
    tier: str | None = None
    isYearly: bool = False
    paymentMethod: str | None = None


class RecordUsageRequest(BaseModel):
    feature: str | None = None
    metadata: dict[str, Any] | None = None


def _usage_payload(result: UsageResult) -> dict[str, Any]:
    return {
        "feature": result.feature,
        "date": result.usage_date.isoformat(),
        "count": result.count,
        "limit": result.limit,
        "remaining": result.remaining,
    }


@router.get("/status")
async def subscription_status(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.status(session, user_id=user_id, now_utc=utc_now())
    return ok(to_wire(result))


@router.get("/check-feature")
async def check_feature(
    featurePath: str | None = Query(default=None),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.check_feature(
            session,
            user_id=user_id,
            feature_path=featurePath,
            now_utc=utc_now(),
        )
    return ok(to_wire(result))


@router.get("/usage/{feature}")
async def feature_usage(feature: str, user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.usage(
            session,
            user_id=user_id,
            feature=feature,
            now_utc=utc_now(),
        )
    return ok(_usage_payload(result))


@router.post("/record-usage")
async def record_usage(
    payload: RecordUsageRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.record_usage(
            session,
            user_id=user_id,
            feature=payload.feature,
            metadata=payload.metadata,
            now_utc=utc_now(),
        )
    return ok(_usage_payload(result), message="Usage recorded")


@router.post("/create")
async def create_subscription(
    payload: SubscriptionCreateRequest,
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.create(
            session,
            user_id=user_id,
            tier=payload.tier,
            is_yearly=payload.isYearly,
            payment_method=payload.paymentMethod,
            now_utc=utc_now(),
        )
    return ok(to_wire(result), message="Subscription order created")


@router.post("/check-expired")
async def check_expired(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.check_expired(
            session,
            user_id=user_id,
            now_utc=utc_now(),
        )
    return ok({"expired": result.expired, "newTier": result.new_tier})


@router.post("/cancel")
async def cancel_subscription(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        await SubscriptionService.cancel(session, user_id=user_id, now_utc=utc_now())
    return ok(None, message="Subscription cancelled")


@router.get("/check-status")
async def check_order_status(
    orderId: str | None = Query(default=None),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.check_order_status(
            session,
            user_id=user_id,
            order_id=orderId or "",
        )
    return ok(to_wire(result))
