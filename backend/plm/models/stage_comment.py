from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid, utc_now


class CommentStage(str, Enum):
    DS = "ds"
    PPS = "pps"


class StageComment(Base):
    """Review comment left on a model during the DS or PPS stage."""

    __tablename__ = "stage_comments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    model_id = Column(
        UUIDType,
        ForeignKey("models.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage = Column(String(10), nullable=False, index=True)
    user_id = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_role = Column(String(20), nullable=False)
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
