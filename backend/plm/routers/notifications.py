"""Notification audit trail endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from plm.core.auth import require_permission
from plm.core.database import get_db
from plm.core.permissions import Permission
from plm.models.user import User
from plm.repositories.notification_repository import NotificationRepository
from plm.schemas.notification import NotificationResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[NotificationResponse],
    summary="List notifications",
    responses={401: {"description": "Authentication required"}},
)
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    model_id: UUID | None = None,
    user_id: UUID | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_MODELS)),
) -> list[NotificationResponse]:
    """List delivery records with optional filters."""
    repo = NotificationRepository(db)
    notifications = repo.get_all(
        skip=skip,
        limit=limit,
        model_id=model_id,
        user_id=user_id,
        status=status,
    )
    return [NotificationResponse.model_validate(n) for n in notifications]
