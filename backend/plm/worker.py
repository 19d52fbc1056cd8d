import logging
from typing import Any
from uuid import UUID

from plm.services.notification_dispatch import run_approval_fanout, run_status_change_fanout
from plm.tasks import redis_settings

logger = logging.getLogger(__name__)


async def notify_status_change_task(
    ctx: dict[str, Any],
    model_id: str,
    new_status: str,
    changed_by_user_id: str | None = None,
) -> dict[str, int]:
    """Background task: deliver status-change notifications for one transition."""
    result = run_status_change_fanout(
        UUID(model_id),
        new_status,
        UUID(changed_by_user_id) if changed_by_user_id else None,
    )
    if result is None:
        return {"sent": 0, "failed": 0, "skipped": 0}
    return {"sent": result.sent, "failed": result.failed, "skipped": result.skipped}


async def notify_approval_task(
    ctx: dict[str, Any],
    model_id: str,
    approval_type: str,
    approval_status: str,
    comment: str | None = None,
) -> int:
    """Background task: deliver approval notifications. Returns the sent count."""
    result = run_approval_fanout(UUID(model_id), approval_type, approval_status, comment)
    if result is None:
        return 0
    if result.failed:
        logger.info("Approval notifications for %s: %d failed", model_id, result.failed)
    return result.sent


class WorkerSettings:
    functions = [
        notify_status_change_task,
        notify_approval_task,
    ]
    redis_settings = redis_settings
