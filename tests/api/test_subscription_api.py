from __future__ import annotations

from tianji.core.config import get_settings


async def _create_and_confirm(client, headers, *, tier: str) -> str:
    created = await client.post(
        "/api/subscription/create",
        json={"tier": tier, "isYearly": False, "paymentMethod": "wechat"},
        headers=headers,
    )
    assert created.status_code == 200
    order_id = created.json()["data"]["orderId"]
    confirmed = await client.post(
        "/internal/subscriptions/confirm-payment",
        json={"order_id": order_id},
        headers={"X-Internal-Token": get_settings().internal_api_token},
    )
    assert confirmed.status_code == 200
    return order_id


async def test_status_defaults_to_free(client, auth_headers) -> None:
    response = await client.get("/api/subscription/status", headers=auth_headers("u1"))

    data = response.json()["data"]
    assert data["tier"] == "free"
    assert data["isPremium"] is False
    assert data["features"]["yijing"]["dailyLimit"] == 3


async def test_record_usage_counts_up(client, auth_headers) -> None:
    headers = auth_headers("u1")
    before = await client.get("/api/subscription/usage/yijing", headers=headers)
    for _ in range(2):
        await client.post("/api/subscription/record-usage", json={"feature": "yijing"}, headers=headers)
    after = await client.get("/api/subscription/usage/yijing", headers=headers)

    assert before.json()["data"]["count"] == 0
    assert after.json()["data"]["count"] == 2
    assert after.json()["data"]["remaining"] == 1


async def test_record_usage_over_limit_is_403(client, auth_headers) -> None:
    headers = auth_headers("u1")
    for _ in range(3):
        await client.post("/api/subscription/record-usage", json={"feature": "yijing"}, headers=headers)

    response = await client.post(
        "/api/subscription/record-usage",
        json={"feature": "yijing"},
        headers=headers,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "E_QUOTA_EXCEEDED"


async def test_create_twice_conflicts(client, auth_headers) -> None:
    headers = auth_headers("u1")
    await client.post("/api/subscription/create", json={"tier": "basic"}, headers=headers)

    response = await client.post("/api/subscription/create", json={"tier": "vip"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "E_SUBSCRIPTION_CONFLICT"


async def test_check_status_without_order_id_is_400(client, auth_headers) -> None:
    response = await client.get("/api/subscription/check-status", headers=auth_headers("u1"))

    assert response.status_code == 400
    assert response.json()["error"] == "E_VALIDATION"


async def test_paid_order_unlocks_premium_features(client, auth_headers) -> None:
    headers = auth_headers("u1")
    order_id = await _create_and_confirm(client, headers, tier="premium")

    order = await client.get("/api/subscription/check-status", params={"orderId": order_id}, headers=headers)
    feature = await client.get(
        "/api/subscription/check-feature",
        params={"featurePath": "ziwei.advancedChart"},
        headers=headers,
    )
    expired = await client.post("/api/subscription/check-expired", headers=headers)

    assert order.json()["data"]["paid"] is True
    assert feature.json()["data"]["allowed"] is True
    assert expired.json()["data"] == {"expired": False, "newTier": "premium"}


async def test_cancel_without_subscription_is_404(client, auth_headers) -> None:
    response = await client.post("/api/subscription/cancel", headers=auth_headers("u1"))

    assert response.status_code == 404


async def test_cancel_returns_user_to_free(client, auth_headers) -> None:
    headers = auth_headers("u1")
    await _create_and_confirm(client, headers, tier="basic")

    cancelled = await client.post("/api/subscription/cancel", headers=headers)
    status = await client.get("/api/subscription/status", headers=headers)

    assert cancelled.json() == {"success": True, "data": None, "message": "Subscription cancelled"}
    assert status.json()["data"]["tier"] == "free"
