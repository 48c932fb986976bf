from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from typing import Any

TIER_FREE = "free"
TIER_BASIC = "basic"
TIER_PREMIUM = "premium"
TIER_VIP = "vip"

TIER_ORDER: tuple[str, ...] = (TIER_FREE, TIER_BASIC, TIER_PREMIUM, TIER_VIP)
PAID_TIERS = frozenset({TIER_BASIC, TIER_PREMIUM, TIER_VIP})
PREMIUM_TIERS = frozenset({TIER_PREMIUM, TIER_VIP})

# dailyLimit 0 means unlimited.
TIER_FEATURES: dict[str, dict[str, dict[str, Any]]] = {
    TIER_FREE: {
        "yijing": {"available": True, "dailyLimit": 3},
        "ziwei": {"available": True, "basicChart": True, "advancedChart": False, "dailyLimit": 2},
        "bazi": {"available": False},
        "qimen": {"available": False},
        "liuyao": {"available": False},
        "astrology": {"available": True, "timeAssets": False, "cache": False},
    },
    TIER_BASIC: {
        "yijing": {"available": True, "dailyLimit": 10},
        "ziwei": {"available": True, "basicChart": True, "advancedChart": False, "dailyLimit": 5},
        "bazi": {"available": True, "dailyLimit": 3},
        "qimen": {"available": False},
        "liuyao": {"available": False},
        "astrology": {"available": True, "timeAssets": True, "cache": True},
    },
    TIER_PREMIUM: {
        "yijing": {"available": True, "dailyLimit": 0},
        "ziwei": {"available": True, "basicChart": True, "advancedChart": True, "dailyLimit": 0},
        "bazi": {"available": True, "dailyLimit": 0},
        "qimen": {"available": True, "dailyLimit": 5},
        "liuyao": {"available": True, "dailyLimit": 5},
        "astrology": {"available": True, "timeAssets": True, "cache": True},
    },
    TIER_VIP: {
        "yijing": {"available": True, "dailyLimit": 0},
        "ziwei": {"available": True, "basicChart": True, "advancedChart": True, "dailyLimit": 0},
        "bazi": {"available": True, "dailyLimit": 0},
        "qimen": {"available": True, "dailyLimit": 0},
        "liuyao": {"available": True, "dailyLimit": 0},
        "astrology": {"available": True, "timeAssets": True, "cache": True},
    },
}


@dataclass(frozen=True, slots=True)
class TierPrice:
    tier: str
    monthly: int
    yearly: int


TIER_PRICES: dict[str, TierPrice] = {
    TIER_BASIC: TierPrice(TIER_BASIC, monthly=29, yearly=290),
    TIER_PREMIUM: TierPrice(TIER_PREMIUM, monthly=99, yearly=990),
    TIER_VIP: TierPrice(TIER_VIP, monthly=199, yearly=1990),
}

_MISSING = object()


def get_price(tier: str, *, is_yearly: bool) -> int:
    price = TIER_PRICES[tier]
    return price.yearly if is_yearly else price.monthly


def duration_months(*, is_yearly: bool) -> int:
    return 12 if is_yearly else 1


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def upgrade_tier(tier: str) -> str:
    index = TIER_ORDER.index(tier) if tier in TIER_ORDER else 0
    return TIER_ORDER[min(index + 1, len(TIER_ORDER) - 1)]


def features_for(tier: str) -> dict[str, dict[str, Any]]:
    return TIER_FEATURES.get(tier, TIER_FEATURES[TIER_FREE])


def resolve_feature_path(tier: str, feature_path: str) -> object:
    """Walks a dotted path through the tier's capability table; returns _MISSING if absent."""
    node: object = features_for(tier)
    for part in feature_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def is_missing(value: object) -> bool:
    return value is _MISSING


def daily_limit(tier: str, feature: str) -> int:
    config = features_for(tier).get(feature)
    if not isinstance(config, dict):
        return 0
    return max(0, int(config.get("dailyLimit", 0) or 0))


def is_feature_available(tier: str, feature: str) -> bool:
    config = features_for(tier).get(feature)
    if not isinstance(config, dict):
        return True
    return bool(config.get("available", True))
