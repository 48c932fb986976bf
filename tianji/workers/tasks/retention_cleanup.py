from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from time import perf_counter

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tianji.core.config import get_settings
from tianji.core.dates import usage_local_date
from tianji.db.repo.timespace_cache_repo import TimespaceCacheRepo
from tianji.db.repo.usage_repo import UsageRepo
from tianji.db.session import SessionLocal
from tianji.workers.asyncio_runner import run_async_job
from tianji.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

DeleteBatchFn = Callable[[AsyncSession, int], Awaitable[int]]


def _clamp_retention_days(value: int) -> int:
    return max(1, min(3650, int(value)))


def _clamp_batch_size(value: int) -> int:
    return max(1, min(50000, int(value)))


def _clamp_max_batches(value: int) -> int:
    return max(1, min(1000, int(value)))


def _clamp_runtime_seconds(value: int) -> int:
    return max(5, min(600, int(value)))


def _clamp_schedule_seconds(value: int) -> int:
    return max(60, min(86400, int(value)))


async def _cleanup_table_batched(
    *,
    table_name: str,
    cutoff: str,
    batch_size: int,
    max_batches_per_table: int,
    max_runtime_seconds: int,
    delete_batch_fn: DeleteBatchFn,
) -> dict[str, object]:
    started_at = perf_counter()
    rows_deleted = 0
    batches_executed = 0
    runtime_guard_triggered = False

    for _ in range(max_batches_per_table):
        if perf_counter() - started_at >= max_runtime_seconds:
            runtime_guard_triggered = True
            break
        async with SessionLocal.begin() as session:
            deleted_in_batch = await delete_batch_fn(session, batch_size)
        batches_executed += 1
        rows_deleted += deleted_in_batch
        if deleted_in_batch < batch_size:
            break

    table_result: dict[str, object] = {
        "table": table_name,
        "cutoff": cutoff,
        "rows_deleted": rows_deleted,
        "batches_executed": batches_executed,
        "duration_ms": int((perf_counter() - started_at) * 1000),
        "stopped_by_runtime_guard": runtime_guard_triggered,
        "error_count": 0,
    }
    logger.info("retention_cleanup_table_finished", **table_result)
    return table_result


async def run_retention_cleanup_async(*, now_utc: datetime | None = None) -> dict[str, object]:
    """Deletes expired timespace cache rows and usage counters past their retention window."""
    settings = get_settings()
    now_utc = now_utc or datetime.now(timezone.utc)

    usage_days = _clamp_retention_days(settings.retention_usage_counters_days)
    usage_cutoff = usage_local_date(now_utc, settings.usage_timezone) - timedelta(days=usage_days)
    batch_size = _clamp_batch_size(settings.retention_cleanup_batch_size)
    max_batches_per_table = _clamp_max_batches(settings.retention_cleanup_max_batches_per_table)
    max_runtime_seconds = _clamp_runtime_seconds(settings.retention_cleanup_max_runtime_seconds)

    table_specs: tuple[tuple[str, str, DeleteBatchFn], ...] = (
        (
            "timespace_cache_entries",
            now_utc.isoformat(),
            lambda session, limit: TimespaceCacheRepo.delete_expired_before(
                session,
                cutoff_utc=now_utc,
                limit=limit,
            ),
        ),
        (
            "usage_counters",
            usage_cutoff.isoformat(),
            lambda session, limit: UsageRepo.delete_before(
                session,
                before_date=usage_cutoff,
                limit=limit,
            ),
        ),
    )

    table_results: list[dict[str, object]] = []
    total_rows_deleted = 0
    total_errors = 0

    for table_name, cutoff, delete_batch_fn in table_specs:
        try:
            table_result = await _cleanup_table_batched(
                table_name=table_name,
                cutoff=cutoff,
                batch_size=batch_size,
                max_batches_per_table=max_batches_per_table,
                max_runtime_seconds=max_runtime_seconds,
                delete_batch_fn=delete_batch_fn,
            )
        except Exception as exc:
            total_errors += 1
            table_result = {
                "table": table_name,
                "cutoff": cutoff,
                "rows_deleted": 0,
                "batches_executed": 0,
                "error_count": 1,
                "error": str(exc),
            }
            logger.exception("retention_cleanup_table_failed", **table_result)

        table_results.append(table_result)
        rows_deleted_value = table_result.get("rows_deleted", 0)
        total_rows_deleted += rows_deleted_value if isinstance(rows_deleted_value, int) else 0

    result: dict[str, object] = {
        "generated_at": now_utc.isoformat(),
        "batch_size": batch_size,
        "tables": table_results,
        "rows_deleted_total": total_rows_deleted,
        "error_count": total_errors,
    }
    if total_errors > 0:
        logger.warning("retention_cleanup_finished_with_errors", **result)
    else:
        logger.info("retention_cleanup_finished", **result)
    return result


@celery_app.task(name="tianji.workers.tasks.retention_cleanup.run_retention_cleanup")
def run_retention_cleanup() -> dict[str, object]:
    return run_async_job(run_retention_cleanup_async)


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "retention-cleanup": {
            "task": "tianji.workers.tasks.retention_cleanup.run_retention_cleanup",
            "schedule": float(_clamp_schedule_seconds(get_settings().retention_cleanup_schedule_seconds)),
            "options": {"queue": "q_low"},
        },
    }
)
