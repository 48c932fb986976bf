from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from tianji.api.deps import current_user_id
from tianji.api.envelope import ok, to_wire
from tianji.db.session import SessionLocal
from tianji.economy.coins.service import CoinLedgerService

router = APIRouter(prefix="/api/coins", tags=["coins"])


@router.get("/balance")
async def coin_balance(user_id: str = Depends(current_user_id)) -> JSONResponse:
    async with SessionLocal.begin() as session:
        balance = await CoinLedgerService.get_balance(session, user_id=user_id)
    return ok({"balance": balance})


@router.get("/transactions")
async def coin_transactions(
    limit: int = Query(default=20),
    offset: int = Query(default=0),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    async with SessionLocal.begin() as session:
        transactions = await CoinLedgerService.list_transactions(
            session,
            user_id=user_id,
            limit=limit,
            offset=offset,
        )
    return ok(to_wire(transactions))
