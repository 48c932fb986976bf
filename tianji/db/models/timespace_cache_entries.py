from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import BigIntPK, Base, JSONType


class TimespaceCacheEntry(Base):
    __tablename__ = "timespace_cache_entries"
    __table_args__ = (
        CheckConstraint("period_start <= period_end", name="ck_timespace_cache_period_order"),
        UniqueConstraint(
            "user_id",
            "dimension",
            "cache_key",
            "period_start",
            "period_end",
            name="uq_timespace_cache_user_key_period",
        ),
        Index("idx_timespace_cache_expires", "expires_at"),
        Index("idx_timespace_cache_user_key_updated", "user_id", "dimension", "cache_key", "updated_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    dimension: Mapped[str] = mapped_column(String(32), nullable=False)
    cache_key: Mapped[str] = mapped_column(String(128), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    cache_data: Mapped[object] = mapped_column(JSONType, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
