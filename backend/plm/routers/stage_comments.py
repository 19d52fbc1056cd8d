"""Stage comment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from plm.core.auth import get_current_user, require_permission
from plm.core.database import get_db
from plm.core.permissions import Permission
from plm.models.user import User
from plm.schemas.stage_comment import StageCommentCreate, StageCommentResponse
from plm.services.stage_comment_service import StageCommentService

router = APIRouter()


@router.post(
    "/",
    response_model=StageCommentResponse,
    status_code=201,
    summary="Add stage comment",
    responses={
        400: {"description": "Invalid stage"},
        403: {"description": "Role may not comment on this stage"},
    },
)
async def add_stage_comment(
    data: StageCommentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> StageCommentResponse:
    comment = StageCommentService(db).add_comment(
        data.model_id, data.stage, user, data.comment_text
    )
    return StageCommentResponse(
        id=comment.id,  # type: ignore[arg-type]
        model_id=comment.model_id,  # type: ignore[arg-type]
        stage=str(comment.stage),
        user_id=comment.user_id,  # type: ignore[arg-type]
        user_role=str(comment.user_role),
        user_name=str(user.full_name),
        comment_text=str(comment.comment_text),
        created_at=comment.created_at,  # type: ignore[arg-type]
    )


@router.get(
    "/",
    response_model=list[StageCommentResponse],
    summary="List stage comments",
)
async def list_stage_comments(
    model_id: UUID = Query(...),
    stage: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_COMMENTS)),
) -> list[StageCommentResponse]:
    views = StageCommentService(db).list_comments(model_id, stage)
    return [
        StageCommentResponse(
            id=v.comment.id,  # type: ignore[arg-type]
            model_id=v.comment.model_id,  # type: ignore[arg-type]
            stage=str(v.comment.stage),
            user_id=v.comment.user_id,  # type: ignore[arg-type]
            user_role=str(v.comment.user_role),
            user_name=v.user_name,
            comment_text=str(v.comment.comment_text),
            created_at=v.comment.created_at,  # type: ignore[arg-type]
        )
        for v in views
    ]
