from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from tianji.db.models.base import Base, JSONType


class StarChart(Base):
    __tablename__ = "star_charts"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    chart_structure: Mapped[dict[str, object]] = mapped_column(JSONType, nullable=False)
    brief_analysis_cache: Mapped[dict[str, object] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
