"""Approval engine: PPS dual approval and per-field buyer/constructor approvals.

The two mechanisms are deliberately separate. PPS approvals are one row per
``(model, role)`` and gate the automatic move to ``in_production``; field
approvals are columns on the model used for reporting and never change the
model's status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plm.core.errors import (
    ForbiddenError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PLMError,
)
from plm.models.garment_model import FieldApprovalStatus, GarmentModel, ModelStatus
from plm.models.pps_approval import ApprovalAttachment, ApproverRole, PPSApproval
from plm.models.shared import utc_now
from plm.models.status_history import HistoryChangeType
from plm.models.user import User
from plm.repositories.garment_model_repository import GarmentModelRepository
from plm.repositories.pps_approval_repository import PPSApprovalRepository
from plm.repositories.status_history_repository import StatusHistoryRepository
from plm.repositories.user_repository import UserRepository
from plm.services.notification_dispatch import NotificationDispatcher
from plm.services.status_transition import ensure_model_visible

logger = logging.getLogger(__name__)

DUAL_APPROVAL_COMMENT = "PPS approved by both buyer and constructor"

# The dual-approval gate only moves models that have not reached production yet
PRE_PRODUCTION_STATUSES = frozenset(
    {
        ModelStatus.DRAFT.value,
        ModelStatus.APPROVED.value,
        ModelStatus.DS_STAGE.value,
        ModelStatus.PPS_STAGE.value,
    }
)

# Field approval column -> the only role allowed to set it
FIELD_APPROVAL_ROLES: dict[str, ApproverRole] = {
    HistoryChangeType.BUYER_APPROVAL.value: ApproverRole.BUYER,
    HistoryChangeType.CONSTRUCTOR_APPROVAL.value: ApproverRole.CONSTRUCTOR,
}


@dataclass
class PPSApprovalOutcome:
    approval: PPSApproval
    created: bool
    advanced_to_production: bool


@dataclass
class ApprovalView:
    """A PPS approval annotated for display."""

    approval: PPSApproval
    approver_name: str | None
    attachments: list[ApprovalAttachment] = field(default_factory=list)

    @property
    def attachment_count(self) -> int:
        return len(self.attachments)


def dual_approval_satisfied(approvals: list[PPSApproval]) -> bool:
    """True when both a buyer and a constructor row exist with ``is_approved``."""
    by_role = {str(a.approver_role): bool(a.is_approved) for a in approvals}
    return by_role.get(ApproverRole.BUYER.value, False) and by_role.get(
        ApproverRole.CONSTRUCTOR.value, False
    )


class ApprovalService:
    def __init__(self, db: Session, dispatcher: NotificationDispatcher | None = None):
        self.db = db
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.model_repo = GarmentModelRepository(db)
        self.approval_repo = PPSApprovalRepository(db)
        self.history_repo = StatusHistoryRepository(db)
        self.user_repo = UserRepository(db)

    def record_pps_approval(
        self,
        model_id: UUID,
        approver_role: str,
        approver_id: UUID | None,
        is_approved: bool,
        comment: str | None = None,
    ) -> PPSApprovalOutcome:
        """Upsert the caller's PPS approval and advance the model when both sides approve.

        The model row is locked for the whole read-modify-write so that two
        concurrent approvals cannot both miss the gate.
        """
        try:
            role = ApproverRole(approver_role)
        except ValueError:
            raise ForbiddenError("Only buyers and constructors can approve PPS") from None

        try:
            model = self.model_repo.get_for_update(model_id)
            if model is None:
                raise NotFoundError("Model", model_id)

            approval, created = self.approval_repo.upsert(
                model_id, role.value, approver_id, is_approved, comment
            )

            advanced = False
            approvals = self.approval_repo.list_for_model(model_id)
            if (
                dual_approval_satisfied(approvals)
                and str(model.status) in PRE_PRODUCTION_STATUSES
            ):
                self.history_repo.append(
                    model_id,
                    from_status=str(model.status),
                    to_status=ModelStatus.IN_PRODUCTION.value,
                    changed_by=approver_id,
                    comment=DUAL_APPROVAL_COMMENT,
                )
                self.model_repo.update_status(model, ModelStatus.IN_PRODUCTION.value)
                advanced = True

            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("PPS approval for model %s failed: %s", model_id, exc)
            raise InternalError() from exc

        self.db.refresh(approval)
        logger.info(
            "PPS %s approval for model %s recorded (approved=%s, created=%s)",
            role.value,
            model_id,
            is_approved,
            created,
        )
        if advanced:
            logger.info("Model %s moved to in_production after dual PPS approval", model_id)

        self._dispatch_approval(
            model_id,
            role.value,
            FieldApprovalStatus.APPROVED.value
            if is_approved
            else FieldApprovalStatus.NOT_APPROVED.value,
            comment,
        )
        if advanced:
            self._dispatch_status(model_id, ModelStatus.IN_PRODUCTION.value, approver_id)

        return PPSApprovalOutcome(approval=approval, created=created, advanced_to_production=advanced)

    def get_pps_approvals(
        self, model_id: UUID, viewer: User | None = None
    ) -> list[ApprovalView]:
        """Approvals newest first, with approver names and attachments."""
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            raise NotFoundError("Model", model_id)
        ensure_model_visible(model, viewer)
        approvals = self.approval_repo.list_for_model(model_id)
        names = self.user_repo.get_display_names(
            [a.approver_id for a in approvals]  # type: ignore[misc]
        )
        return [
            ApprovalView(
                approval=a,
                approver_name=names.get(a.approver_id),  # type: ignore[arg-type]
                attachments=self.approval_repo.get_attachments(a.id),  # type: ignore[arg-type]
            )
            for a in approvals
        ]

    def add_approval_attachment(
        self,
        approval_id: UUID,
        file_url: str,
        file_name: str,
        file_type: str | None = None,
        uploaded_by: UUID | None = None,
    ) -> ApprovalAttachment:
        if self.approval_repo.get_by_id(approval_id) is None:
            raise NotFoundError("Approval", approval_id)
        try:
            return self.approval_repo.add_attachment(
                approval_id, file_url, file_name, file_type, uploaded_by
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError() from exc

    def update_field_approval(
        self,
        model_id: UUID,
        field_name: str,
        approval_status: str,
        comment: str | None,
        actor_id: UUID | None,
        actor_role: str,
    ) -> GarmentModel:
        """Set ``buyer_approval`` or ``constructor_approval`` and log it to history.

        Does not touch the model status or the PPS gate.
        """
        owner_role = FIELD_APPROVAL_ROLES.get(field_name)
        if owner_role is None:
            raise InvalidArgumentError(f"Invalid approval field: {field_name}")
        try:
            FieldApprovalStatus(approval_status)
        except ValueError:
            raise InvalidArgumentError("Invalid approval status") from None
        if actor_role != owner_role.value:
            raise ForbiddenError(f"Only {owner_role.value}s can update {field_name}")

        try:
            model = self.model_repo.get_for_update(model_id)
            if model is None:
                raise NotFoundError("Model", model_id)

            now = utc_now()
            if owner_role == ApproverRole.BUYER:
                model.buyer_approval = approval_status  # type: ignore[assignment]
                model.buyer_approval_comment = comment  # type: ignore[assignment]
                model.buyer_approved_at = now  # type: ignore[assignment]
            else:
                model.constructor_approval = approval_status  # type: ignore[assignment]
                model.constructor_approval_comment = comment  # type: ignore[assignment]
                model.constructor_approved_at = now  # type: ignore[assignment]

            self.history_repo.append(
                model_id,
                from_status=str(model.status),
                to_status=str(model.status),
                changed_by=actor_id,
                comment=f"{owner_role.value.capitalize()} approval: {approval_status}",
                change_type=HistoryChangeType(field_name),
            )
            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Field approval for model %s failed: %s", model_id, exc)
            raise InternalError() from exc

        self.db.refresh(model)
        self._dispatch_approval(model_id, owner_role.value, approval_status, comment)
        return model

    def _dispatch_approval(
        self,
        model_id: UUID,
        approval_type: str,
        approval_status: str,
        comment: str | None,
    ) -> None:
        try:
            self.dispatcher.approval_recorded(model_id, approval_type, approval_status, comment)
        except Exception:
            logger.exception("Could not dispatch approval notification for model %s", model_id)

    def _dispatch_status(
        self,
        model_id: UUID,
        new_status: str,
        changed_by: UUID | None,
    ) -> None:
        try:
            self.dispatcher.status_changed(model_id, new_status, changed_by)
        except Exception:
            logger.exception("Could not dispatch status notification for model %s", model_id)
