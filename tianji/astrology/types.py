from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(slots=True)
class TimeAsset:
    id: int
    dimension: str
    period_start: date
    period_end: date
    period_type: str
    expires_at: datetime | None
    cost_coins: int
    created_at: datetime


@dataclass(slots=True)
class UnlockResult:
    asset: TimeAsset
    remaining_balance: int


@dataclass(slots=True)
class CacheEntry:
    id: int
    dimension: str
    cache_key: str
    period_start: date
    period_end: date
    cache_data: object
    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    is_expired: bool


@dataclass(slots=True)
class StarChartView:
    chart_structure: dict[str, object]
    brief_analysis_cache: dict[str, object] | None
    created_at: datetime
    updated_at: datetime
