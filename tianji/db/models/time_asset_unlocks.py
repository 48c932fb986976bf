from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import BigIntPK, Base


class TimeAssetUnlock(Base):
    __tablename__ = "time_asset_unlocks"
    __table_args__ = (
        CheckConstraint("cost_coins > 0", name="ck_time_asset_unlocks_cost_positive"),
        CheckConstraint(
            "dimension IN ('daily','monthly','yearly')",
            name="ck_time_asset_unlocks_dimension",
        ),
        CheckConstraint(
            "period_type IN ('day','month','year')",
            name="ck_time_asset_unlocks_period_type",
        ),
        CheckConstraint("period_start <= period_end", name="ck_time_asset_unlocks_period_order"),
        UniqueConstraint(
            "user_id",
            "dimension",
            "period_start",
            "period_end",
            name="uq_time_asset_unlocks_user_period",
        ),
        Index("idx_time_asset_unlocks_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    dimension: Mapped[str] = mapped_column(String(16), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cost_coins: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
