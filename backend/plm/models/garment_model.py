"""Garment model record and its workflow enums."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import relationship

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid


class ModelStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    DS_STAGE = "ds_stage"
    PPS_STAGE = "pps_stage"
    IN_PRODUCTION = "in_production"
    SHIPPED = "shipped"


class FieldApprovalStatus(str, Enum):
    NOT_APPROVED = "not_approved"
    APPROVED = "approved"
    APPROVED_WITH_COMMENTS = "approved_with_comments"


class GarmentModel(Base):
    """A garment tracked through the workflow from draft to shipped."""

    __tablename__ = "models"
    __table_args__ = (
        Index("ix_models_collection_id_model_number", "collection_id", "model_number"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    collection_id = Column(
        UUIDType,
        ForeignKey("collections.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    model_number = Column(String(100), nullable=False)
    model_name = Column(String(255), nullable=True)
    product_type = Column(String(100), nullable=True)
    category = Column(String(100), nullable=True)
    fit_type = Column(String(100), nullable=True)
    product_group = Column(String(100), nullable=True)
    product_group_code = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=ModelStatus.DRAFT.value, index=True)

    buyer_approval = Column(
        String(30), nullable=False, default=FieldApprovalStatus.NOT_APPROVED.value
    )
    buyer_approval_comment = Column(Text, nullable=True)
    buyer_approved_at = Column(DateTime(timezone=True), nullable=True)
    constructor_approval = Column(
        String(30), nullable=False, default=FieldApprovalStatus.NOT_APPROVED.value
    )
    constructor_approval_comment = Column(Text, nullable=True)
    constructor_approved_at = Column(DateTime(timezone=True), nullable=True)

    assigned_factory_id = Column(
        UUIDType,
        ForeignKey("factories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    designer_id = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(UUIDType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    status_history = relationship("StatusHistory", cascade="all, delete-orphan")
    pps_approvals = relationship("PPSApproval", cascade="all, delete-orphan")
    stage_comments = relationship("StageComment", cascade="all, delete-orphan")
    notifications = relationship("Notification", cascade="all, delete-orphan")
