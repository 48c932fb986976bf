from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import OperationalError

from tianji.core.config import get_settings
from tianji.db.session import SessionLocal
from tianji.economy.subscriptions.service import SubscriptionService
from tianji.workers.asyncio_runner import run_async_job
from tianji.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()


def _clamp_schedule_seconds(value: int) -> int:
    return max(30, min(86400, int(value)))


async def run_subscription_expiry_sweep_async() -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        result = await SubscriptionService.check_expired(session, now_utc=now_utc)

    summary = {"expired_subscriptions": len(result.expired_subscription_ids)}
    logger.info("subscription_expiry_sweep_finished", **summary)
    return summary


@celery_app.task(
    name="tianji.workers.tasks.subscription_expiry.run_subscription_expiry_sweep",
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_backoff_max=60,
    retry_jitter=True,
    max_retries=max(0, int(settings.subscription_expiry_max_retries)),
)
def run_subscription_expiry_sweep() -> dict[str, int]:
    return run_async_job(run_subscription_expiry_sweep_async)


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "subscription-expiry-sweep": {
            "task": "tianji.workers.tasks.subscription_expiry.run_subscription_expiry_sweep",
            "schedule": float(_clamp_schedule_seconds(settings.subscription_expiry_sweep_seconds)),
            "options": {"queue": "q_normal"},
        },
    }
)
