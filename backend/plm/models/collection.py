from sqlalchemy import Column, DateTime, String, func

from plm.core.database import Base
from plm.models.shared import UUIDType, generate_uuid


class Collection(Base):
    __tablename__ = "collections"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
