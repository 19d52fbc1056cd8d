"""Notification fan-out for model status changes and approvals.

A status change is routed to a fixed set of roles, resolved to a
deduplicated recipient list (the acting user excluded), delivered card by
card through the message gateway, and recorded one ``Notification`` row per
recipient. Delivery problems never propagate: they end up in the record and
in the logs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from plm.core.config import settings
from plm.models.garment_model import FieldApprovalStatus, ModelStatus
from plm.models.notification import NotificationStatus
from plm.models.pps_approval import ApproverRole
from plm.models.user import UserRole
from plm.repositories.garment_model_repository import GarmentModelRepository, ModelSummary
from plm.repositories.notification_repository import NotificationRepository
from plm.repositories.user_repository import NotificationRecipient, UserRepository
from plm.services.message_gateway import DeliveryResult, MessageDeliveryGateway

logger = logging.getLogger(__name__)

STATUS_NOTIFICATION_RULES: dict[ModelStatus, tuple[UserRole, ...]] = {
    ModelStatus.DRAFT: (),
    ModelStatus.APPROVED: (UserRole.CHINA_OFFICE,),
    ModelStatus.DS_STAGE: (UserRole.CHINA_OFFICE, UserRole.FACTORY),
    ModelStatus.PPS_STAGE: (UserRole.CONSTRUCTOR, UserRole.BUYER),
    ModelStatus.IN_PRODUCTION: (UserRole.FACTORY, UserRole.CHINA_OFFICE),
    ModelStatus.SHIPPED: (),
}

# An approval notifies the opposite side and the China office
APPROVAL_NOTIFICATION_RULES: dict[ApproverRole, tuple[UserRole, ...]] = {
    ApproverRole.BUYER: (UserRole.CONSTRUCTOR, UserRole.CHINA_OFFICE),
    ApproverRole.CONSTRUCTOR: (UserRole.BUYER, UserRole.CHINA_OFFICE),
}

STATUS_LABELS: dict[ModelStatus, str] = {
    ModelStatus.DRAFT: "Draft",
    ModelStatus.APPROVED: "Approved",
    ModelStatus.DS_STAGE: "DS stage",
    ModelStatus.PPS_STAGE: "PPS stage",
    ModelStatus.IN_PRODUCTION: "In production",
    ModelStatus.SHIPPED: "Shipped",
}

APPROVAL_LABELS: dict[str, str] = {
    FieldApprovalStatus.APPROVED.value: "Approved",
    FieldApprovalStatus.APPROVED_WITH_COMMENTS.value: "Approved with comments",
    FieldApprovalStatus.NOT_APPROVED.value: "Not approved",
    "pending": "Pending",
}

STATUS_CHANGE_TITLE = "Model status update"


@dataclass
class FanoutResult:
    """Aggregate counts for one fan-out.

    ``skipped`` counts short-circuits before any recipient was resolved
    (no routing rule, or the model could not be loaded).
    """

    sent: int = 0
    failed: int = 0
    skipped: int = 0


def status_label(status: str) -> str:
    try:
        return STATUS_LABELS[ModelStatus(status)]
    except ValueError:
        return status


def model_url(model_id: UUID) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/models/{model_id}"


def format_status_change(summary: ModelSummary, new_status: str) -> tuple[str, str]:
    """Build the title and description shared by every recipient."""
    description = (
        f"Model: {summary.model_number} - {summary.model_name or 'N/A'}\n"
        f"Collection: {summary.collection_name or 'N/A'}\n"
        f"New status: {status_label(new_status)}"
    )
    return STATUS_CHANGE_TITLE, description


def format_approval(
    summary: ModelSummary,
    approval_type: str,
    approval_status: str,
    comment: str | None,
) -> tuple[str, str]:
    title = f"{approval_type.capitalize()} approval: {summary.model_number}"
    lines = [
        f"Model: {summary.model_number} - {summary.model_name or 'N/A'}",
        f"Collection: {summary.collection_name or 'N/A'}",
        f"Decision: {APPROVAL_LABELS.get(approval_status, approval_status)}",
    ]
    if comment:
        lines.append(f"Comment: {comment}")
    return title, "\n".join(lines)


def dedupe_recipients(
    recipients: list[NotificationRecipient],
    exclude_user_id: UUID | None = None,
) -> list[NotificationRecipient]:
    """Keep the first occurrence of each user, dropping ``exclude_user_id``."""
    seen: set[UUID] = set()
    unique: list[NotificationRecipient] = []
    for recipient in recipients:
        if recipient.user_id in seen:
            continue
        seen.add(recipient.user_id)
        if exclude_user_id is not None and recipient.user_id == exclude_user_id:
            continue
        unique.append(recipient)
    return unique


class NotificationService:
    """Resolves recipients and delivers status-change and approval notifications."""

    def __init__(self, db: Session, gateway: MessageDeliveryGateway):
        self.db = db
        self.gateway = gateway
        self.model_repo = GarmentModelRepository(db)
        self.user_repo = UserRepository(db)
        self.notification_repo = NotificationRepository(db)

    def resolve_recipients(
        self,
        roles: tuple[UserRole, ...],
        factory_id: UUID | None,
    ) -> list[NotificationRecipient]:
        """Look up recipients for each role in order.

        The factory role is scoped to the model's assigned factory and is not
        queried at all when no factory is assigned.
        """
        recipients: list[NotificationRecipient] = []
        for role in roles:
            if role == UserRole.FACTORY:
                if factory_id is None:
                    logger.debug("No factory assigned, skipping factory recipients")
                    continue
                recipients.extend(
                    self.user_repo.find_notification_recipients(role.value, factory_id)
                )
            else:
                recipients.extend(self.user_repo.find_notification_recipients(role.value))
        return recipients

    def _deliver(
        self,
        recipient: NotificationRecipient,
        title: str,
        description: str,
        url: str,
    ) -> DeliveryResult:
        try:
            return self.gateway.send_card(
                recipient.external_messaging_id,
                title,
                description,
                url,
                settings.NOTIFICATION_BUTTON_TEXT,
            )
        except Exception as exc:
            logger.exception("Gateway raised while notifying %s", recipient.display_name)
            return DeliveryResult(success=False, error=str(exc) or exc.__class__.__name__)

    def notify_status_change(
        self,
        model_id: UUID,
        new_status: str,
        changed_by_user_id: UUID | None = None,
    ) -> FanoutResult:
        """Notify the roles routed for ``new_status`` about a model transition."""
        result = FanoutResult()

        if not self.gateway.is_configured():
            logger.info("Message gateway not configured, skipping notifications")
            return result

        try:
            roles = STATUS_NOTIFICATION_RULES[ModelStatus(new_status)]
        except ValueError:
            roles = ()
        if not roles:
            logger.info("No notification rules for status: %s", new_status)
            result.skipped += 1
            return result

        summary = self.model_repo.get_summary(model_id)
        if summary is None:
            logger.error("Model %s not found, cannot send status notifications", model_id)
            result.skipped += 1
            return result

        recipients = dedupe_recipients(
            self.resolve_recipients(roles, summary.assigned_factory_id),
            exclude_user_id=changed_by_user_id,
        )
        if not recipients:
            logger.info("No recipients for model %s status %s", model_id, new_status)
            return result

        title, description = format_status_change(summary, new_status)
        url = model_url(model_id)
        notification_type = f"status_change_{new_status}"

        for recipient in recipients:
            outcome = self._deliver(recipient, title, description, url)
            if outcome.success:
                status = NotificationStatus.SENT
                result.sent += 1
                logger.info("Notification sent to %s", recipient.display_name)
            else:
                status = NotificationStatus.FAILED
                result.failed += 1
                logger.warning(
                    "Failed to notify %s: %s", recipient.display_name, outcome.error
                )
            try:
                self.notification_repo.create(
                    model_id=model_id,
                    user_id=recipient.user_id,
                    notification_type=notification_type,
                    title=title,
                    message=description,
                    status=status,
                    provider_msg_id=outcome.msg_id if outcome.success else None,
                    error_message=None if outcome.success else outcome.error,
                )
            except Exception:
                self.db.rollback()
                logger.exception(
                    "Failed to record notification for user %s", recipient.user_id
                )

        logger.info(
            "Status notifications for model %s: sent=%d, failed=%d, skipped=%d",
            model_id,
            result.sent,
            result.failed,
            result.skipped,
        )
        return result

    def notify_approval(
        self,
        model_id: UUID,
        approval_type: str,
        approval_status: str,
        comment: str | None = None,
    ) -> FanoutResult:
        """Tell the opposite approver role and the China office about a decision.

        Unlike status changes, the actor is not excluded and no
        ``Notification`` rows are written.
        """
        result = FanoutResult()
        if not self.gateway.is_configured():
            return result

        try:
            roles = APPROVAL_NOTIFICATION_RULES[ApproverRole(approval_type)]
        except ValueError:
            logger.warning("Unknown approval type: %s", approval_type)
            result.skipped += 1
            return result

        summary = self.model_repo.get_summary(model_id)
        if summary is None:
            logger.error("Model %s not found, cannot send approval notifications", model_id)
            result.skipped += 1
            return result

        recipients = dedupe_recipients(self.resolve_recipients(roles, None))
        if not recipients:
            return result

        title, description = format_approval(summary, approval_type, approval_status, comment)
        url = model_url(model_id)
        for recipient in recipients:
            outcome = self._deliver(recipient, title, description, url)
            if outcome.success:
                result.sent += 1
            else:
                result.failed += 1
                logger.warning(
                    "Failed to send approval notification to %s: %s",
                    recipient.display_name,
                    outcome.error,
                )
        return result
