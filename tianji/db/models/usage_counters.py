from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import Base, JSONType


class UsageCounter(Base):
    __tablename__ = "usage_counters"
    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_usage_counters_count_non_negative"),
        Index("idx_usage_counters_date", "usage_date"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    feature: Mapped[str] = mapped_column(String(64), primary_key=True)
    usage_date: Mapped[date] = mapped_column(Date, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_metadata: Mapped[dict[str, object] | None] = mapped_column(JSONType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
