from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class SubscriptionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class SubscriptionCreateResult:
    order_id: str
    subscription_id: int
    tier: str
    status: str
    is_yearly: bool
    price_amount: int


@dataclass(slots=True)
class SubscriptionStatusResult:
    tier: str
    status: str
    expires_at: datetime | None
    auto_renew: bool
    is_premium: bool
    subscription_id: int | None
    features: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(slots=True)
class OrderStatusResult:
    order_id: str
    tier: str
    status: str
    paid: bool
    started_at: datetime | None
    expires_at: datetime | None


@dataclass(slots=True)
class ExpiryCheckResult:
    expired: bool
    new_tier: str
    expired_subscription_ids: list[int] = field(default_factory=list)


@dataclass(slots=True)
class FeatureCheckResult:
    allowed: bool
    tier: str
    reason: str | None = None
    upgrade_tier: str | None = None


@dataclass(slots=True)
class UsageResult:
    feature: str
    usage_date: date
    count: int
    limit: int
    remaining: int
