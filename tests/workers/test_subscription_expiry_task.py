from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from tianji.economy.subscriptions.service import SubscriptionService
from tianji.workers.celery_app import celery_app
from tianji.workers.tasks import subscription_expiry


def test_run_subscription_expiry_sweep_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int]:
        return {"expired_subscriptions": 4}

    async def fake_dispose() -> None:
        return None

    monkeypatch.setattr(subscription_expiry, "run_subscription_expiry_sweep_async", fake_async)
    monkeypatch.setattr("tianji.workers.asyncio_runner.dispose_engine", fake_dispose)

    assert subscription_expiry.run_subscription_expiry_sweep() == {"expired_subscriptions": 4}


def test_sweep_task_retries_on_operational_errors() -> None:
    task = subscription_expiry.run_subscription_expiry_sweep

    assert OperationalError in task.autoretry_for
    assert task.max_retries == 3


def test_sweep_is_scheduled() -> None:
    entry = celery_app.conf.beat_schedule["subscription-expiry-sweep"]

    assert entry["task"] == subscription_expiry.run_subscription_expiry_sweep.name
    assert entry["schedule"] == 300.0


async def test_sweep_expires_due_subscriptions(session_factory) -> None:
    past = datetime.now(timezone.utc) - timedelta(days=60)
    async with session_factory.begin() as session:
        created = await SubscriptionService.create(
            session,
            user_id="u1",
            tier="basic",
            is_yearly=False,
            payment_method=None,
            now_utc=past,
        )
    async with session_factory.begin() as session:
        await SubscriptionService.confirm_payment(session, order_id=created.order_id, now_utc=past)

    result = await subscription_expiry.run_subscription_expiry_sweep_async()

    assert result == {"expired_subscriptions": 1}
    async with session_factory() as session:
        order = await SubscriptionService.check_order_status(
            session,
            user_id="u1",
            order_id=created.order_id,
        )
    assert order.status == "expired"
