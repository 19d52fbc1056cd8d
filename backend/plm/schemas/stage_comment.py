from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StageCommentCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: UUID
    stage: str
    comment_text: str = Field(..., min_length=1)


class StageCommentResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: UUID
    model_id: UUID
    stage: str
    user_id: UUID | None = None
    user_role: str
    user_name: str | None = None
    comment_text: str
    created_at: datetime | None = None
