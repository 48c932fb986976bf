from celery import Celery

from tianji.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "tianji",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "tianji.workers.tasks.subscription_expiry",
        "tianji.workers.tasks.retention_cleanup",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.usage_timezone,
    enable_utc=True,
)


@celery_app.task(name="tianji.workers.celery_app.ping")
def ping() -> str:
    return "pong"
