from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from plm.models.stage_comment import StageComment


class StageCommentRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        model_id: UUID,
        stage: str,
        user_id: UUID,
        user_role: str,
        comment_text: str,
    ) -> StageComment:
        comment = StageComment(
            model_id=model_id,
            stage=stage,
            user_id=user_id,
            user_role=user_role,
            comment_text=comment_text,
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def list_for_model(self, model_id: UUID, stage: str | None = None) -> list[StageComment]:
        query = self.db.query(StageComment).filter(StageComment.model_id == model_id)
        if stage is not None:
            query = query.filter(StageComment.stage == stage)
        return query.order_by(StageComment.created_at.desc()).all()
