from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import Base, JSONType


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    birth_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    birth_location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    mbti: Mapped[str | None] = mapped_column(String(8), nullable=True)
    profession: Mapped[str | None] = mapped_column(String(128), nullable=True)
    current_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    identity: Mapped[str | None] = mapped_column(String(64), nullable=True)
    energy_level: Mapped[str | None] = mapped_column(String(16), nullable=True)
    wishes: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
