from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import BigIntPK, Base


class CompletenessReward(Base):
    __tablename__ = "completeness_rewards"
    __table_args__ = (
        CheckConstraint("reward_type IN ('FIELD','THRESHOLD')", name="ck_completeness_rewards_type"),
        CheckConstraint("coins > 0", name="ck_completeness_rewards_coins_positive"),
        UniqueConstraint(
            "user_id",
            "reward_type",
            "reward_key",
            name="uq_completeness_rewards_user_reward",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reward_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reward_key: Mapped[str] = mapped_column(String(32), nullable=False)
    coins: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
