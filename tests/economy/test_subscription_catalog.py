from __future__ import annotations

from datetime import datetime, timezone

from tianji.economy.subscriptions.catalog import (
    add_months,
    daily_limit,
    get_price,
    is_feature_available,
    is_missing,
    resolve_feature_path,
    upgrade_tier,
)


def test_prices_cover_monthly_and_yearly_plans() -> None:
    assert get_price("basic", is_yearly=False) == 29
    assert get_price("premium", is_yearly=True) == 990
    assert get_price("vip", is_yearly=False) == 199


def test_daily_limit_zero_means_unlimited_for_premium() -> None:
    assert daily_limit("free", "yijing") == 3
    assert daily_limit("basic", "bazi") == 3
    assert daily_limit("premium", "yijing") == 0


def test_unlisted_feature_is_available_without_limit() -> None:
    assert is_feature_available("free", "tarot") is True
    assert daily_limit("free", "tarot") == 0


def test_free_tier_cannot_use_bazi() -> None:
    assert is_feature_available("free", "bazi") is False
    assert is_feature_available("basic", "bazi") is True


def test_resolve_feature_path_walks_nested_flags() -> None:
    assert resolve_feature_path("free", "ziwei.advancedChart") is False
    assert resolve_feature_path("premium", "ziwei.advancedChart") is True
    assert is_missing(resolve_feature_path("vip", "ziwei.unknownFlag"))


def test_upgrade_tier_caps_at_vip() -> None:
    assert upgrade_tier("free") == "basic"
    assert upgrade_tier("premium") == "vip"
    assert upgrade_tier("vip") == "vip"


def test_add_months_clamps_to_end_of_month() -> None:
    start = datetime(2026, 1, 31, 10, 0, tzinfo=timezone.utc)

    assert add_months(start, 1) == datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)
    assert add_months(start, 12) == datetime(2027, 1, 31, 10, 0, tzinfo=timezone.utc)
