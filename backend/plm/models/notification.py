"""Notification audit record: one row per recipient per fan-out."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid, utc_now


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(Base):
    """Delivery outcome for a single recipient. Never updated after creation."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_model_id", "model_id"),
        Index("ix_notifications_user_id", "user_id"),
        Index("ix_notifications_status", "status"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    model_id = Column(
        UUIDType,
        ForeignKey("models.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_type = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default=NotificationStatus.PENDING.value)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    provider_msg_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
