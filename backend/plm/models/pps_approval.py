"""Pre-production sample approvals and their file attachments."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid, utc_now


class ApproverRole(str, Enum):
    BUYER = "buyer"
    CONSTRUCTOR = "constructor"


class PPSApproval(Base):
    """At most one row per model and approver role; re-approvals update in place."""

    __tablename__ = "pps_approvals"
    __table_args__ = (
        UniqueConstraint("model_id", "approver_role", name="uq_pps_approvals_model_role"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    model_id = Column(
        UUIDType,
        ForeignKey("models.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_role = Column(String(20), nullable=False)
    approver_id = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())

    attachments = relationship("ApprovalAttachment", cascade="all, delete-orphan")


class ApprovalAttachment(Base):
    """File metadata attached to a PPS approval; the file itself lives in external storage."""

    __tablename__ = "approval_attachments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    approval_id = Column(
        UUIDType,
        ForeignKey("pps_approvals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_url = Column(String(2048), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=True)
    uploaded_by = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
