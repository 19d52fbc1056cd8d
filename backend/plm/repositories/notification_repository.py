"""Repository for the notification audit trail."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from plm.models.notification import Notification, NotificationStatus
from plm.models.shared import utc_now


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        model_id: UUID,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        status: NotificationStatus,
        provider_msg_id: str | None = None,
        error_message: str | None = None,
    ) -> Notification:
        """Persist one delivery outcome; ``sent_at`` is set only for sent records."""
        notification = Notification(
            model_id=model_id,
            user_id=user_id,
            notification_type=notification_type,
            status=status.value,
            title=title,
            message=message,
            provider_msg_id=provider_msg_id,
            error_message=error_message,
            sent_at=utc_now() if status == NotificationStatus.SENT else None,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_all(
        self,
        skip: int = 0,
        limit: int = 50,
        model_id: UUID | None = None,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Notification]:
        query = self.db.query(Notification)
        if model_id is not None:
            query = query.filter(Notification.model_id == model_id)
        if user_id is not None:
            query = query.filter(Notification.user_id == user_id)
        if status is not None:
            query = query.filter(Notification.status == status)
        return (
            query.order_by(Notification.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
