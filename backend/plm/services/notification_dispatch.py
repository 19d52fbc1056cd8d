"""Post-commit hand-off from the transactional services to notification fan-out.

Services call a ``NotificationDispatcher`` after their unit of work commits.
The HTTP layer uses ``BackgroundTaskDispatcher`` so the response is sent
before delivery starts; fan-out then runs in its own database session, either
in-process or on the arq worker.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import BackgroundTasks

from plm.core.config import settings
from plm.core.database import new_session
from plm.services.messaging.wechat import get_wechat_gateway
from plm.services.notification_service import FanoutResult, NotificationService
from plm.tasks import enqueue_approval_notification, enqueue_status_change_notification

logger = logging.getLogger(__name__)


def run_status_change_fanout(
    model_id: UUID,
    new_status: str,
    changed_by_user_id: UUID | None = None,
) -> FanoutResult | None:
    """Run a status-change fan-out in a fresh session. Never raises."""
    db = new_session()
    try:
        service = NotificationService(db, get_wechat_gateway())
        return service.notify_status_change(model_id, new_status, changed_by_user_id)
    except Exception:
        logger.exception("Status notification fan-out failed for model %s", model_id)
        return None
    finally:
        db.close()


def run_approval_fanout(
    model_id: UUID,
    approval_type: str,
    approval_status: str,
    comment: str | None = None,
) -> FanoutResult | None:
    db = new_session()
    try:
        service = NotificationService(db, get_wechat_gateway())
        return service.notify_approval(model_id, approval_type, approval_status, comment)
    except Exception:
        logger.exception("Approval notification fan-out failed for model %s", model_id)
        return None
    finally:
        db.close()


class NotificationDispatcher:
    """Receives committed events. The base implementation drops them."""

    def status_changed(
        self,
        model_id: UUID,
        new_status: str,
        changed_by_user_id: UUID | None,
    ) -> None:
        logger.debug("Dropping status change event for model %s", model_id)

    def approval_recorded(
        self,
        model_id: UUID,
        approval_type: str,
        approval_status: str,
        comment: str | None,
    ) -> None:
        logger.debug("Dropping approval event for model %s", model_id)


class BackgroundTaskDispatcher(NotificationDispatcher):
    """Schedule fan-out to run after the HTTP response has been sent."""

    def __init__(self, background_tasks: BackgroundTasks, via_worker: bool | None = None):
        self.background_tasks = background_tasks
        self.via_worker = (
            settings.NOTIFICATIONS_VIA_WORKER if via_worker is None else via_worker
        )

    def status_changed(
        self,
        model_id: UUID,
        new_status: str,
        changed_by_user_id: UUID | None,
    ) -> None:
        if self.via_worker:
            self.background_tasks.add_task(
                enqueue_status_change_notification, model_id, new_status, changed_by_user_id
            )
        else:
            self.background_tasks.add_task(
                run_status_change_fanout, model_id, new_status, changed_by_user_id
            )

    def approval_recorded(
        self,
        model_id: UUID,
        approval_type: str,
        approval_status: str,
        comment: str | None,
    ) -> None:
        if self.via_worker:
            self.background_tasks.add_task(
                enqueue_approval_notification, model_id, approval_type, approval_status, comment
            )
        else:
            self.background_tasks.add_task(
                run_approval_fanout, model_id, approval_type, approval_status, comment
            )


def get_notification_dispatcher(background_tasks: BackgroundTasks) -> NotificationDispatcher:
    """FastAPI dependency supplying a request-scoped dispatcher."""
    return BackgroundTaskDispatcher(background_tasks)
