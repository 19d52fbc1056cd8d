"""Repository for PPS approvals and their attachments."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from plm.models.pps_approval import ApprovalAttachment, PPSApproval
from plm.models.shared import utc_now


class PPSApprovalRepository:
    """Repository for PPSApproval model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, approval_id: UUID) -> PPSApproval | None:
        return self.db.query(PPSApproval).filter(PPSApproval.id == approval_id).first()

    def get_by_role(self, model_id: UUID, approver_role: str) -> PPSApproval | None:
        return (
            self.db.query(PPSApproval)
            .filter(
                PPSApproval.model_id == model_id,
                PPSApproval.approver_role == approver_role,
            )
            .first()
        )

    def upsert(
        self,
        model_id: UUID,
        approver_role: str,
        approver_id: UUID | None,
        is_approved: bool,
        comment: str | None = None,
    ) -> tuple[PPSApproval, bool]:
        """Insert or update the approval for ``(model_id, approver_role)``.

        Returns the row and whether it was newly created.
        """
        approval = self.get_by_role(model_id, approver_role)
        created = approval is None
        if approval is None:
            approval = PPSApproval(
                model_id=model_id,
                approver_role=approver_role,
                approver_id=approver_id,
                is_approved=is_approved,
                comment=comment,
            )
            self.db.add(approval)
        else:
            approval.approver_id = approver_id  # type: ignore[assignment]
            approval.is_approved = is_approved  # type: ignore[assignment]
            approval.comment = comment  # type: ignore[assignment]
            approval.created_at = utc_now()  # type: ignore[assignment]
        self.db.flush()
        return approval, created

    def list_for_model(self, model_id: UUID) -> list[PPSApproval]:
        return (
            self.db.query(PPSApproval)
            .filter(PPSApproval.model_id == model_id)
            .order_by(PPSApproval.created_at.desc())
            .all()
        )

    def add_attachment(
        self,
        approval_id: UUID,
        file_url: str,
        file_name: str,
        file_type: str | None = None,
        uploaded_by: UUID | None = None,
    ) -> ApprovalAttachment:
        attachment = ApprovalAttachment(
            approval_id=approval_id,
            file_url=file_url,
            file_name=file_name,
            file_type=file_type,
            uploaded_by=uploaded_by,
        )
        self.db.add(attachment)
        self.db.commit()
        self.db.refresh(attachment)
        return attachment

    def get_attachments(self, approval_id: UUID) -> list[ApprovalAttachment]:
        return (
            self.db.query(ApprovalAttachment)
            .filter(ApprovalAttachment.approval_id == approval_id)
            .order_by(ApprovalAttachment.created_at.asc())
            .all()
        )
