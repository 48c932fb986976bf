from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import BigIntPK, Base

OPEN_SUBSCRIPTION_PREDICATE = "status IN ('pending','active')"


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("tier IN ('basic','premium','vip')", name="ck_subscriptions_tier"),
        CheckConstraint(
            "status IN ('pending','active','expired','cancelled')",
            name="ck_subscriptions_status",
        ),
        CheckConstraint("price_amount >= 0", name="ck_subscriptions_price_non_negative"),
        Index(
            "uq_subscriptions_user_open",
            "user_id",
            unique=True,
            postgresql_where=text(OPEN_SUBSCRIPTION_PREDICATE),
            sqlite_where=text(OPEN_SUBSCRIPTION_PREDICATE),
        ),
        UniqueConstraint("order_id", name="uq_subscriptions_order_id"),
        Index("idx_subscriptions_user_created", "user_id", "created_at"),
        Index("idx_subscriptions_status_expires", "status", "expires_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    tier: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    is_yearly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
