from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.db.models.coin_balances import CoinBalance
from tianji.db.models.coin_ledger_entries import CoinLedgerEntry
from tianji.db.upsert import insert_for


class CoinsRepo:
    @staticmethod
    async def get_balance(session: AsyncSession, user_id: str) -> int:
        stmt = select(CoinBalance.balance).where(CoinBalance.user_id == user_id)
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def increment_balance(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        now_utc: datetime,
    ) -> int:
        insert_stmt = insert_for(session, CoinBalance).values(
            user_id=user_id,
            balance=amount,
            version=0,
            updated_at=now_utc,
        )
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[CoinBalance.user_id],
            set_={
                "balance": CoinBalance.balance + amount,
                "version": CoinBalance.version + 1,
                "updated_at": insert_stmt.excluded.updated_at,
            },
        ).returning(CoinBalance.balance)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def decrement_balance_if_sufficient(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(CoinBalance)
            .where(
                CoinBalance.user_id == user_id,
                CoinBalance.balance >= amount,
            )
            .values(
                balance=CoinBalance.balance - amount,
                version=CoinBalance.version + 1,
                updated_at=now_utc,
            )
            .returning(CoinBalance.balance)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        balance_after = result.scalar_one_or_none()
        return None if balance_after is None else int(balance_after)

    @staticmethod
    async def get_entry_by_idempotency_key(
        session: AsyncSession,
        idempotency_key: str,
    ) -> CoinLedgerEntry | None:
        stmt = select(CoinLedgerEntry).where(CoinLedgerEntry.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_entry(session: AsyncSession, *, entry: CoinLedgerEntry) -> CoinLedgerEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_entries(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int,
        offset: int,
    ) -> list[CoinLedgerEntry]:
        stmt = (
            select(CoinLedgerEntry)
            .where(CoinLedgerEntry.user_id == user_id)
            .order_by(CoinLedgerEntry.created_at.desc(), CoinLedgerEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
