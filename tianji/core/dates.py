from __future__ import annotations

import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from tianji.core.errors import ValidationError

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:?\d{2})?$"
)


def parse_iso_date(value: object, *, field: str) -> date:
    """Accepts only YYYY-MM-DD; anything else (e.g. 2025/01/01) is a validation error."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{field} is not a valid calendar date") from exc


def parse_iso_instant(value: object, *, field: str) -> datetime:
    """Parses an ISO-8601 timestamp or date into an aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 timestamp")
    if _ISO_DATE_RE.match(value):
        parsed_date = parse_iso_date(value, field=field)
        return datetime(parsed_date.year, parsed_date.month, parsed_date.day, tzinfo=timezone.utc)
    if not _ISO_TIMESTAMP_RE.match(value):
        raise ValidationError(f"{field} must be an ISO-8601 timestamp")
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValidationError(f"{field} is not a valid timestamp") from exc
    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def usage_local_date(now_utc: datetime, timezone_name: str) -> date:
    """Converts UTC datetime to the usage reference-timezone date for daily counters."""
    return now_utc.astimezone(ZoneInfo(timezone_name)).date()
