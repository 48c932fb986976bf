from __future__ import annotations

from datetime import date

import pytest

from tianji.astrology.rules import (
    parse_period,
    validate_cache_key,
    validate_page,
    validate_period_type,
    validate_unlock_dimension,
)
from tianji.core.errors import ValidationError


def test_parse_period_returns_dates() -> None:
    assert parse_period("2025-01-01", "2025-01-31") == (date(2025, 1, 1), date(2025, 1, 31))


def test_parse_period_rejects_reversed_range() -> None:
    with pytest.raises(ValidationError):
        parse_period("2025-02-01", "2025-01-01")


def test_unlock_dimension_and_period_type_are_closed_sets() -> None:
    assert validate_unlock_dimension("monthly") == "monthly"
    assert validate_period_type("year") == "year"
    with pytest.raises(ValidationError):
        validate_unlock_dimension("weekly")
    with pytest.raises(ValidationError):
        validate_period_type("week")


def test_cache_key_requires_non_blank_values() -> None:
    assert validate_cache_key("yearly", "fortune") == ("yearly", "fortune")
    with pytest.raises(ValidationError):
        validate_cache_key("yearly", " ")
    with pytest.raises(ValidationError):
        validate_cache_key(None, "fortune")


def test_validate_page_bounds() -> None:
    validate_page(1, 0)
    with pytest.raises(ValidationError):
        validate_page(0, 0)
    with pytest.raises(ValidationError):
        validate_page(101, 0)
    with pytest.raises(ValidationError):
        validate_page(10, -1)
