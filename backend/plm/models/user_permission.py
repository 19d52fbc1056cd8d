"""Per-user permission flags."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, func

from plm.core.database import Base
from plm.models.shared import UUIDType


class UserPermission(Base):
    """One row per user; each column is a single capability flag."""

    __tablename__ = "user_permissions"

    user_id = Column(
        UUIDType,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    can_view_dashboard = Column(Boolean, nullable=False, default=False)
    can_view_models = Column(Boolean, nullable=False, default=False)
    can_create_models = Column(Boolean, nullable=False, default=False)
    can_edit_models = Column(Boolean, nullable=False, default=False)
    can_delete_models = Column(Boolean, nullable=False, default=False)
    can_edit_model_status = Column(Boolean, nullable=False, default=False)
    can_view_files = Column(Boolean, nullable=False, default=False)
    can_upload_files = Column(Boolean, nullable=False, default=False)
    can_delete_files = Column(Boolean, nullable=False, default=False)
    can_view_comments = Column(Boolean, nullable=False, default=False)
    can_create_comments = Column(Boolean, nullable=False, default=False)
    can_delete_any_comments = Column(Boolean, nullable=False, default=False)
    can_view_collections = Column(Boolean, nullable=False, default=False)
    can_edit_collections = Column(Boolean, nullable=False, default=False)
    can_view_users = Column(Boolean, nullable=False, default=False)
    can_edit_users = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
