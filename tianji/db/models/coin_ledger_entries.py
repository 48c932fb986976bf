from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import BigIntPK, Base, JSONType


class CoinLedgerEntry(Base):
    __tablename__ = "coin_ledger_entries"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_coin_ledger_entries_amount_positive"),
        CheckConstraint("direction IN ('CREDIT','DEBIT')", name="ck_coin_ledger_entries_direction"),
        Index("idx_coin_ledger_user_created", "user_id", "created_at"),
        Index("idx_coin_ledger_reason", "reason"),
        UniqueConstraint("idempotency_key", name="uq_coin_ledger_entries_idempotency_key"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(48), nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
