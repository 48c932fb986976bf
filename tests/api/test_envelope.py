from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from tianji.api.envelope import to_wire


@dataclass
class _Sample:
    user_id: str
    created_at: datetime
    usage_date: date
    payload: dict[str, object]


def test_to_wire_camel_cases_dataclass_fields_only() -> None:
    sample = _Sample(
        user_id="u1",
        created_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        usage_date=date(2026, 3, 1),
        payload={"snake_key": 1},
    )

    assert to_wire(sample) == {
        "userId": "u1",
        "createdAt": "2026-03-01T12:00:00Z",
        "usageDate": "2026-03-01",
        "payload": {"snake_key": 1},
    }


def test_to_wire_can_keep_snake_case() -> None:
    sample = _Sample(
        user_id="u1",
        created_at=datetime(2026, 3, 1, 12, 0),
        usage_date=date(2026, 3, 1),
        payload={},
    )

    assert to_wire(sample, camel=False)["created_at"] == "2026-03-01T12:00:00Z"
