from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.core.errors import InsufficientBalanceError, ValidationError
from tianji.db.models.coin_ledger_entries import CoinLedgerEntry
from tianji.db.repo.coins_repo import CoinsRepo
from tianji.economy.coins.types import CoinMutationResult, CoinReason, CoinTransaction

logger = structlog.get_logger(__name__)

MAX_TRANSACTIONS_PAGE = 100


def _validate_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("amount must be a positive integer")


def _as_result(entry: CoinLedgerEntry, *, idempotent_replay: bool) -> CoinMutationResult:
    return CoinMutationResult(
        user_id=entry.user_id,
        direction=entry.direction,
        amount=entry.amount,
        reason=entry.reason,
        balance_after=entry.balance_after,
        idempotent_replay=idempotent_replay,
    )


class CoinLedgerService:
    @staticmethod
    async def get_balance(session: AsyncSession, *, user_id: str) -> int:
        return await CoinsRepo.get_balance(session, user_id)

    @staticmethod
    async def credit(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        reason: CoinReason,
        now_utc: datetime,
        idempotency_key: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> CoinMutationResult:
        _validate_amount(amount)
        if idempotency_key is not None:
            existing = await CoinsRepo.get_entry_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                return _as_result(existing, idempotent_replay=True)

        try:
            async with session.begin_nested():
                balance_after = await CoinsRepo.increment_balance(
                    session,
                    user_id=user_id,
                    amount=amount,
                    now_utc=now_utc,
                )
                entry = await CoinsRepo.create_entry(
                    session,
                    entry=CoinLedgerEntry(
                        user_id=user_id,
                        direction="CREDIT",
                        amount=amount,
                        balance_after=balance_after,
                        reason=reason.value,
                        idempotency_key=idempotency_key,
                        metadata_=metadata or {},
                        created_at=now_utc,
                    ),
                )
        except IntegrityError:
            if idempotency_key is None:
                raise
            existing = await CoinsRepo.get_entry_by_idempotency_key(session, idempotency_key)
            if existing is None:
                raise
            return _as_result(existing, idempotent_replay=True)

        logger.info(
            "coins_credited",
            user_id=user_id,
            amount=amount,
            reason=reason.value,
            balance_after=balance_after,
        )
        return _as_result(entry, idempotent_replay=False)

    @staticmethod
    async def debit(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        reason: CoinReason,
        now_utc: datetime,
        idempotency_key: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> CoinMutationResult:
        _validate_amount(amount)
        if idempotency_key is not None:
            existing = await CoinsRepo.get_entry_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                return _as_result(existing, idempotent_replay=True)

        balance_after = await CoinsRepo.decrement_balance_if_sufficient(
            session,
            user_id=user_id,
            amount=amount,
            now_utc=now_utc,
        )
        if balance_after is None:
            logger.info(
                "coins_debit_rejected",
                user_id=user_id,
                amount=amount,
                reason=reason.value,
            )
            raise InsufficientBalanceError(f"Insufficient Tianji Coins: {amount} required")

        entry = await CoinsRepo.create_entry(
            session,
            entry=CoinLedgerEntry(
                user_id=user_id,
                direction="DEBIT",
                amount=amount,
                balance_after=balance_after,
                reason=reason.value,
                idempotency_key=idempotency_key,
                metadata_=metadata or {},
                created_at=now_utc,
            ),
        )
        logger.info(
            "coins_debited",
            user_id=user_id,
            amount=amount,
            reason=reason.value,
            balance_after=balance_after,
        )
        return _as_result(entry, idempotent_replay=False)

    @staticmethod
    async def adjust(
        session: AsyncSession,
        *,
        user_id: str,
        delta: int,
        now_utc: datetime,
        idempotency_key: str | None = None,
        note: str | None = None,
    ) -> CoinMutationResult:
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise ValidationError("delta must be a non-zero integer")
        metadata: dict[str, object] = {"note": note} if note else {}
        if delta > 0:
            return await CoinLedgerService.credit(
                session,
                user_id=user_id,
                amount=delta,
                reason=CoinReason.ADMIN_ADJUSTMENT,
                now_utc=now_utc,
                idempotency_key=idempotency_key,
                metadata=metadata,
            )
        return await CoinLedgerService.debit(
            session,
            user_id=user_id,
            amount=-delta,
            reason=CoinReason.ADMIN_ADJUSTMENT,
            now_utc=now_utc,
            idempotency_key=idempotency_key,
            metadata=metadata,
        )

    @staticmethod
    async def list_transactions(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[CoinTransaction]:
        if limit < 1 or limit > MAX_TRANSACTIONS_PAGE:
            raise ValidationError(f"limit must be between 1 and {MAX_TRANSACTIONS_PAGE}")
        if offset < 0:
            raise ValidationError("offset must be non-negative")

        entries = await CoinsRepo.list_entries(session, user_id=user_id, limit=limit, offset=offset)
        return [
            CoinTransaction(
                id=entry.id,
                direction=entry.direction,
                amount=entry.amount,
                balance_after=entry.balance_after,
                reason=entry.reason,
                metadata=dict(entry.metadata_ or {}),
                created_at=entry.created_at,
            )
            for entry in entries
        ]
