"""PPS approval API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from plm.core.auth import get_current_user, require_permission
from plm.core.database import get_db
from plm.core.permissions import Permission
from plm.models.user import User
from plm.schemas.approval import (
    ApprovalAttachmentCreate,
    ApprovalAttachmentResponse,
    PPSApprovalCreate,
    PPSApprovalDetailResponse,
    PPSApprovalResponse,
    PPSApprovalResult,
)
from plm.services.approval_service import ApprovalService
from plm.services.notification_dispatch import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from plm.services.status_transition import StatusTransitionService

router = APIRouter()


@router.post(
    "/",
    response_model=PPSApprovalResult,
    status_code=201,
    summary="Record PPS approval",
    responses={
        200: {"description": "Existing approval updated"},
        403: {"description": "Only buyers and constructors can approve PPS"},
        404: {"description": "Model not found"},
    },
)
async def record_pps_approval(
    data: PPSApprovalCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> PPSApprovalResult:
    """Record the caller's decision. Both sides approving moves the model to production."""
    outcome = ApprovalService(db, dispatcher).record_pps_approval(
        data.model_id,
        approver_role=str(user.role),
        approver_id=user.id,  # type: ignore[arg-type]
        is_approved=data.is_approved,
        comment=data.comment,
    )
    if not outcome.created:
        response.status_code = 200
    model = StatusTransitionService(db).get_model(data.model_id)
    return PPSApprovalResult(
        approval=PPSApprovalResponse.model_validate(outcome.approval),
        created=outcome.created,
        model_status=str(model.status),
    )


@router.get(
    "/",
    response_model=list[PPSApprovalDetailResponse],
    summary="List PPS approvals for a model",
    responses={
        403: {"description": "Model not visible to this factory"},
        404: {"description": "Model not found"},
    },
)
async def list_pps_approvals(
    model_id: UUID = Query(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.VIEW_MODELS)),
) -> list[PPSApprovalDetailResponse]:
    views = ApprovalService(db).get_pps_approvals(model_id, viewer=user)
    return [
        PPSApprovalDetailResponse(
            **PPSApprovalResponse.model_validate(v.approval).model_dump(),
            approver_name=v.approver_name,
            attachment_count=v.attachment_count,
            attachments=[ApprovalAttachmentResponse.model_validate(a) for a in v.attachments],
        )
        for v in views
    ]


@router.post(
    "/{approval_id}/attachments",
    response_model=ApprovalAttachmentResponse,
    status_code=201,
    summary="Attach a file to a PPS approval",
    responses={404: {"description": "Approval not found"}},
)
async def add_attachment(
    approval_id: UUID,
    data: ApprovalAttachmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Permission.UPLOAD_FILES)),
) -> ApprovalAttachmentResponse:
    attachment = ApprovalService(db).add_approval_attachment(
        approval_id,
        data.file_url,
        data.file_name,
        data.file_type,
        uploaded_by=user.id,  # type: ignore[arg-type]
    )
    return ApprovalAttachmentResponse.model_validate(attachment)
