from __future__ import annotations


async def test_destiny_card_update_returns_events(client, auth_headers) -> None:
    headers = auth_headers("u1")
    response = await client.put(
        "/api/user/destiny-card",
        json={"birthDate": "1990-05-17", "mbti": "INTJ", "energyLevel": "balanced"},
        headers=headers,
    )
    balance = await client.get("/api/coins/balance", headers=headers)

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["completeness"] == 50
    assert data["birthDate"] == "1990-05-17"
    assert data["energyLevel"] == "balanced"
    assert {event["type"] for event in data["events"]} == {
        "COIN_GRANTED",
        "THRESHOLD_REACHED",
        "COMPLETENESS_INCREASED",
    }
    assert balance.json()["data"] == {"balance": 35}


async def test_completeness_breakdown(client, auth_headers) -> None:
    headers = auth_headers("u1")
    await client.put("/api/user/destiny-card", json={"wishes": ["health"]}, headers=headers)

    response = await client.get("/api/user/completeness", headers=headers)

    data = response.json()["data"]
    assert data["completeness"] == 20
    assert data["nextRewardThreshold"] == 30
    assert data["breakdown"]["wishes"] == {"filled": True, "score": 20, "maxScore": 20}


async def test_transactions_list_profile_rewards(client, auth_headers) -> None:
    headers = auth_headers("u1")
    await client.put("/api/user/destiny-card", json={"mbti": "INTJ"}, headers=headers)

    response = await client.get("/api/coins/transactions", headers=headers)

    transactions = response.json()["data"]
    assert [item["reason"] for item in transactions] == ["COMPLETENESS_FIELD_REWARD"]
    assert transactions[0]["balanceAfter"] == 5


async def test_transactions_limit_is_bounded(client, auth_headers) -> None:
    response = await client.get(
        "/api/coins/transactions",
        params={"limit": 500},
        headers=auth_headers("u1"),
    )

    assert response.status_code == 400
