from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tianji.core.errors import InsufficientBalanceError, ValidationError
from tianji.economy.coins.service import CoinLedgerService
from tianji.economy.coins.types import CoinReason

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def test_credit_then_debit_updates_balance(session_factory) -> None:
    async with session_factory.begin() as session:
        credited = await CoinLedgerService.credit(
            session,
            user_id="u1",
            amount=30,
            reason=CoinReason.ADMIN_ADJUSTMENT,
            now_utc=NOW,
        )
        debited = await CoinLedgerService.debit(
            session,
            user_id="u1",
            amount=12,
            reason=CoinReason.TIME_ASSET_UNLOCK,
            now_utc=NOW,
        )

    assert credited.balance_after == 30
    assert debited.balance_after == 18
    async with session_factory() as session:
        assert await CoinLedgerService.get_balance(session, user_id="u1") == 18


async def test_debit_never_drives_balance_negative(session_factory) -> None:
    async with session_factory.begin() as session:
        await CoinLedgerService.credit(
            session,
            user_id="u1",
            amount=5,
            reason=CoinReason.ADMIN_ADJUSTMENT,
            now_utc=NOW,
        )

    with pytest.raises(InsufficientBalanceError):
        async with session_factory.begin() as session:
            await CoinLedgerService.debit(
                session,
                user_id="u1",
                amount=6,
                reason=CoinReason.TIME_ASSET_UNLOCK,
                now_utc=NOW,
            )

    async with session_factory() as session:
        assert await CoinLedgerService.get_balance(session, user_id="u1") == 5
        assert len(await CoinLedgerService.list_transactions(session, user_id="u1")) == 1


async def test_debit_for_unknown_user_is_insufficient(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(InsufficientBalanceError):
            await CoinLedgerService.debit(
                session,
                user_id="nobody",
                amount=1,
                reason=CoinReason.TIME_ASSET_UNLOCK,
                now_utc=NOW,
            )


async def test_credit_with_same_idempotency_key_is_applied_once(session_factory) -> None:
    async with session_factory.begin() as session:
        first = await CoinLedgerService.credit(
            session,
            user_id="u1",
            amount=10,
            reason=CoinReason.ADMIN_ADJUSTMENT,
            now_utc=NOW,
            idempotency_key="grant-1",
        )
    async with session_factory.begin() as session:
        replay = await CoinLedgerService.credit(
            session,
            user_id="u1",
            amount=10,
            reason=CoinReason.ADMIN_ADJUSTMENT,
            now_utc=NOW,
            idempotency_key="grant-1",
        )

    assert first.idempotent_replay is False
    assert replay.idempotent_replay is True
    assert replay.balance_after == 10
    async with session_factory() as session:
        assert await CoinLedgerService.get_balance(session, user_id="u1") == 10


async def test_adjust_rejects_zero_delta(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(ValidationError):
            await CoinLedgerService.adjust(session, user_id="u1", delta=0, now_utc=NOW)


async def test_list_transactions_is_newest_first(session_factory) -> None:
    async with session_factory.begin() as session:
        await CoinLedgerService.adjust(session, user_id="u1", delta=20, now_utc=NOW)
        await CoinLedgerService.adjust(session, user_id="u1", delta=-5, now_utc=NOW, note="fix")

    async with session_factory() as session:
        transactions = await CoinLedgerService.list_transactions(session, user_id="u1", limit=10)

    assert [(item.direction, item.amount) for item in transactions] == [("DEBIT", 5), ("CREDIT", 20)]
    assert transactions[0].metadata == {"note": "fix"}
