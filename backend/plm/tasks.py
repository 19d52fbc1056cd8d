import logging
from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from plm.core.config import settings

logger = logging.getLogger(__name__)

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """
    Enqueue a task to the arq worker.

    Args:
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        Job object from arq
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_status_change_notification(
    model_id: UUID,
    new_status: str,
    changed_by_user_id: UUID | None = None,
) -> Job | None:
    """Queue a status-change fan-out. Failures are logged, never raised."""
    try:
        return await enqueue_task(
            "notify_status_change_task",
            str(model_id),
            new_status,
            str(changed_by_user_id) if changed_by_user_id else None,
        )
    except Exception:
        logger.exception("Could not enqueue status notification for model %s", model_id)
        return None


async def enqueue_approval_notification(
    model_id: UUID,
    approval_type: str,
    approval_status: str,
    comment: str | None = None,
) -> Job | None:
    try:
        return await enqueue_task(
            "notify_approval_task",
            str(model_id),
            approval_type,
            approval_status,
            comment,
        )
    except Exception:
        logger.exception("Could not enqueue approval notification for model %s", model_id)
        return None
