from __future__ import annotations

from datetime import date

from tianji.core.dates import parse_iso_date
from tianji.core.errors import ValidationError

UNLOCK_DIMENSIONS = frozenset({"daily", "monthly", "yearly"})
UNLOCK_PERIOD_TYPES = frozenset({"day", "month", "year"})
MAX_CACHE_DIMENSION_LENGTH = 32
MAX_CACHE_KEY_LENGTH = 128
MAX_PAGE_LIMIT = 100


def parse_period(period_start: object, period_end: object) -> tuple[date, date]:
    start = parse_iso_date(period_start, field="period_start")
    end = parse_iso_date(period_end, field="period_end")
    if start > end:
        raise ValidationError("period_start must not be after period_end")
    return start, end


def validate_unlock_dimension(dimension: object) -> str:
    if dimension not in UNLOCK_DIMENSIONS:
        raise ValidationError("dimension must be one of daily, monthly, yearly")
    return str(dimension)


def validate_period_type(period_type: object) -> str:
    if period_type not in UNLOCK_PERIOD_TYPES:
        raise ValidationError("period_type must be one of day, month, year")
    return str(period_type)


def validate_cache_key(dimension: object, cache_key: object) -> tuple[str, str]:
    if not isinstance(dimension, str) or not dimension.strip():
        raise ValidationError("dimension is required")
    if not isinstance(cache_key, str) or not cache_key.strip():
        raise ValidationError("cache_key is required")
    if len(dimension) > MAX_CACHE_DIMENSION_LENGTH:
        raise ValidationError("dimension is too long")
    if len(cache_key) > MAX_CACHE_KEY_LENGTH:
        raise ValidationError("cache_key is too long")
    return dimension, cache_key


def validate_page(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    if offset < 0:
        raise ValidationError("offset must be non-negative")
