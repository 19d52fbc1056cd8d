"""Append-only log of model status transitions and field approvals."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid, utc_now


class HistoryChangeType(str, Enum):
    STATUS_CHANGE = "status_change"
    BUYER_APPROVAL = "buyer_approval"
    CONSTRUCTOR_APPROVAL = "constructor_approval"


class StatusHistory(Base):
    __tablename__ = "status_history"
    __table_args__ = (Index("ix_status_history_model_id", "model_id"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    model_id = Column(
        UUIDType,
        ForeignKey("models.id", ondelete="CASCADE"),
        nullable=False,
    )
    change_type = Column(
        String(30), nullable=False, default=HistoryChangeType.STATUS_CHANGE.value
    )
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
