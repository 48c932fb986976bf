from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tianji.api.deps import utc_now
from tianji.api.envelope import ok, to_wire
from tianji.core.config import get_settings
from tianji.db.session import SessionLocal
from tianji.economy.coins.service import CoinLedgerService
from tianji.economy.subscriptions.service import SubscriptionService
from tianji.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

router = APIRouter(tags=["internal"])
logger = structlog.get_logger(__name__)


class CoinAdjustRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    delta: int
    idempotency_key: str = Field(min_length=1, max_length=128)
    note: str | None = Field(default=None, max_length=256)


class PaymentConfirmRequest(BaseModel):
    order_id: str = Field(min_length=1, max_length=64)


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.internal_api_trusted_proxies)

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_billing_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning("internal_billing_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


@router.post("/internal/coins/adjust")
async def adjust_coins(payload: CoinAdjustRequest, request: Request) -> JSONResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        result = await CoinLedgerService.adjust(
            session,
            user_id=payload.user_id,
            delta=payload.delta,
            idempotency_key=payload.idempotency_key,
            note=payload.note,
            now_utc=utc_now(),
        )
    logger.info(
        "internal_coins_adjusted",
        user_id=payload.user_id,
        delta=payload.delta,
        balance_after=result.balance_after,
        idempotent_replay=result.idempotent_replay,
    )
    return ok(to_wire(result))


@router.post("/internal/subscriptions/confirm-payment")
async def confirm_subscription_payment(payload: PaymentConfirmRequest, request: Request) -> JSONResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        result = await SubscriptionService.confirm_payment(
            session,
            order_id=payload.order_id,
            now_utc=utc_now(),
        )
    return ok(to_wire(result), message="Subscription activated")
