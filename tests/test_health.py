from __future__ import annotations

from tianji.api.routes import health as health_routes


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


async def test_health_ok(client, monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
        },
    }


async def test_health_returns_503_when_dependency_failed(client, monkeypatch) -> None:
    async def _failed_redis() -> dict[str, str]:
        return {"status": "failed", "error": "redis_unavailable"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _failed_redis)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


async def test_ready_ignores_celery(client, monkeypatch) -> None:
    async def _failed_celery() -> dict[str, str]:
        return {"status": "failed", "error": "celery_unavailable"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _failed_celery)

    response = await client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


async def test_live_ok(client) -> None:
    response = await client.get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "live"}


async def test_database_check_uses_session(session_factory) -> None:
    assert await health_routes._check_database() == {"status": "ok"}


async def test_database_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenSession:
        async def __aenter__(self):
            raise RuntimeError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _BrokenSession())

    assert await health_routes._check_database() == {
        "status": "failed",
        "error": "database_unavailable",
    }


def test_celery_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    assert health_routes._check_celery_worker_sync() == {
        "status": "failed",
        "error": "celery_unavailable",
    }
