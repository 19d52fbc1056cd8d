"""Pydantic schemas for Notification."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: UUID
    model_id: UUID
    user_id: UUID
    notification_type: str
    status: str
    title: str
    message: str
    provider_msg_id: str | None
    error_message: str | None
    sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True, "protected_namespaces": ()}
