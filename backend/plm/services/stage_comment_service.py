"""Review comments on the DS and PPS stages."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from plm.core.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from plm.models.stage_comment import CommentStage, StageComment
from plm.models.user import User, UserRole
from plm.repositories.garment_model_repository import GarmentModelRepository
from plm.repositories.stage_comment_repository import StageCommentRepository
from plm.repositories.user_repository import UserRepository

STAGE_COMMENTERS: dict[CommentStage, frozenset[UserRole]] = {
    CommentStage.DS: frozenset({UserRole.BUYER, UserRole.CONSTRUCTOR, UserRole.DESIGNER}),
    CommentStage.PPS: frozenset({UserRole.BUYER, UserRole.CONSTRUCTOR}),
}


@dataclass
class StageCommentView:
    comment: StageComment
    user_name: str | None


def parse_stage(stage: str) -> CommentStage:
    try:
        return CommentStage(stage)
    except ValueError:
        raise InvalidArgumentError('Invalid stage. Must be "ds" or "pps"') from None


class StageCommentService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = StageCommentRepository(db)
        self.model_repo = GarmentModelRepository(db)
        self.user_repo = UserRepository(db)

    def add_comment(self, model_id: UUID, stage: str, user: User, text: str) -> StageComment:
        comment_stage = parse_stage(stage)
        allowed = STAGE_COMMENTERS[comment_stage]
        if str(user.role) not in {role.value for role in allowed}:
            names = ", ".join(sorted(role.value for role in allowed))
            raise ForbiddenError(
                f"Only {names} can comment on {comment_stage.value.upper()} stage"
            )
        if self.model_repo.get_by_id(model_id) is None:
            raise NotFoundError("Model", model_id)
        return self.repo.create(
            model_id,
            comment_stage.value,
            user.id,  # type: ignore[arg-type]
            str(user.role),
            text,
        )

    def list_comments(self, model_id: UUID, stage: str | None = None) -> list[StageCommentView]:
        stage_value = parse_stage(stage).value if stage is not None else None
        comments = self.repo.list_for_model(model_id, stage_value)
        names = self.user_repo.get_display_names(
            [c.user_id for c in comments]  # type: ignore[misc]
        )
        return [StageCommentView(comment=c, user_name=names.get(c.user_id)) for c in comments]  # type: ignore[arg-type]
