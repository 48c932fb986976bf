from __future__ import annotations

from tianji.core.config import get_settings

UNLOCK_BODY = {
    "dimension": "monthly",
    "period_start": "2026-03-01",
    "period_end": "2026-03-31",
    "period_type": "month",
    "expires_at": "2026-04-01T00:00:00Z",
}


async def _fund(client, user_id: str, delta: int) -> None:
    response = await client.post(
        "/internal/coins/adjust",
        json={"user_id": user_id, "delta": delta, "idempotency_key": f"fund-{user_id}-{delta}"},
        headers={"X-Internal-Token": get_settings().internal_api_token},
    )
    assert response.status_code == 200


async def test_star_chart_requires_token(client) -> None:
    response = await client.post("/api/astrology/star-chart", json={"chart_structure": {"a": 1}})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "E_UNAUTHENTICATED",
        "message": "Bearer token required",
    }


async def test_star_chart_rejects_missing_structure(client, auth_headers) -> None:
    response = await client.post("/api/astrology/star-chart", json={}, headers=auth_headers("u1"))

    assert response.status_code == 400
    assert response.json()["error"] == "E_VALIDATION"


async def test_star_chart_save_and_fetch(client, auth_headers) -> None:
    headers = auth_headers("u1")
    saved = await client.post(
        "/api/astrology/star-chart",
        json={"chart_structure": {"palaces": []}},
        headers=headers,
    )
    fetched = await client.get("/api/astrology/star-chart", headers=headers)

    assert saved.status_code == 200
    body = fetched.json()
    assert body["success"] is True
    assert body["data"]["chart_structure"] == {"palaces": []}
    assert body["data"]["brief_analysis_cache"] is None
    assert body["data"]["created_at"].endswith("Z")


async def test_star_chart_fetch_without_chart_returns_null(client, auth_headers) -> None:
    response = await client.get("/api/astrology/star-chart", headers=auth_headers("u1"))

    assert response.status_code == 200
    assert response.json()["data"] is None


async def test_brief_analysis_update_without_chart_is_404(client, auth_headers) -> None:
    response = await client.put(
        "/api/astrology/star-chart/brief-analysis",
        json={"brief_analysis_cache": {"summary": "x"}},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "E_NOT_FOUND"


async def test_unlock_with_slash_date_is_400(client, auth_headers) -> None:
    response = await client.post(
        "/api/astrology/time-assets/unlock",
        json={**UNLOCK_BODY, "period_start": "2025/01/01"},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "E_VALIDATION"


async def test_unlock_without_coins_is_402(client, auth_headers) -> None:
    response = await client.post(
        "/api/astrology/time-assets/unlock",
        json=UNLOCK_BODY,
        headers=auth_headers("u1"),
    )

    assert response.status_code == 402
    assert response.json()["error"] == "E_INSUFFICIENT_BALANCE"


async def test_unlock_then_check_and_repeat(client, auth_headers) -> None:
    headers = auth_headers("u1")
    await _fund(client, "u1", 30)

    unlocked = await client.post("/api/astrology/time-assets/unlock", json=UNLOCK_BODY, headers=headers)
    repeated = await client.post("/api/astrology/time-assets/unlock", json=UNLOCK_BODY, headers=headers)
    checked = await client.get(
        "/api/astrology/time-assets/check",
        params={"dimension": "monthly", "period_start": "2026-03-01", "period_end": "2026-03-31"},
        headers=headers,
    )
    balance = await client.get("/api/coins/balance", headers=headers)

    assert unlocked.status_code == 200
    assert unlocked.json()["data"]["remaining_balance"] == 20
    assert repeated.status_code == 400
    assert repeated.json()["error"] == "E_ALREADY_UNLOCKED"
    assert checked.json()["data"] == {"is_unlocked": True}
    assert balance.json()["data"] == {"balance": 20}


async def test_cache_round_trip(client, auth_headers) -> None:
    headers = auth_headers("u1")
    saved = await client.post(
        "/api/astrology/cache",
        json={
            "dimension": "yearly",
            "cache_key": "fortune",
            "cache_data": {"luckyColor": "red"},
            "period_start": "2026-01-01",
            "period_end": "2026-12-31",
            "expires_at": "2099-01-01T00:00:00Z",
        },
        headers=headers,
    )
    fetched = await client.get(
        "/api/astrology/cache",
        params={"dimension": "yearly", "cache_key": "fortune"},
        headers=headers,
    )

    assert saved.status_code == 200
    assert fetched.json()["data"]["cache_data"] == {"luckyColor": "red"}
    assert fetched.json()["data"]["is_expired"] is False


async def test_cache_miss_is_404(client, auth_headers) -> None:
    response = await client.get(
        "/api/astrology/cache",
        params={"dimension": "yearly", "cache_key": "missing"},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 404
