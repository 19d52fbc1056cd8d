"""User, factory and role definitions."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid


class UserRole(str, Enum):
    ADMIN = "admin"
    BUYER = "buyer"
    DESIGNER = "designer"
    CONSTRUCTOR = "constructor"
    CHINA_OFFICE = "china_office"
    FACTORY = "factory"


class Factory(Base):
    __tablename__ = "factories"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class User(Base):
    """Platform user; ``wechat_user_id`` is the external messaging identity."""

    __tablename__ = "users"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    factory_id = Column(
        UUIDType,
        ForeignKey("factories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    wechat_user_id = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
