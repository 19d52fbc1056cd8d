"""Model lifecycle: creation, edits, status transitions, factory assignment.

Each mutation runs as one unit of work. A status transition appends exactly
one history row when the status actually changes and, only after the commit,
hands the event to the notification dispatcher.

Transitions are not restricted to the forward order of ``ModelStatus``; any
caller allowed to edit a model may set any valid status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
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
from plm.core.permissions import PrivilegeTier, tier_for_role
from plm.models.garment_model import GarmentModel, ModelStatus
from plm.models.status_history import StatusHistory
from plm.models.user import User, UserRole
from plm.repositories.garment_model_repository import GarmentModelRepository
from plm.repositories.status_history_repository import StatusHistoryRepository
from plm.repositories.user_repository import UserRepository
from plm.services.notification_dispatch import NotificationDispatcher

logger = logging.getLogger(__name__)

# Writable only by the full privilege tier
RESTRICTED_FIELDS = ("product_group", "product_group_code")

# Statuses a factory may see on models assigned to it
FACTORY_VISIBLE_STATUSES = frozenset(
    {
        ModelStatus.APPROVED.value,
        ModelStatus.DS_STAGE.value,
        ModelStatus.PPS_STAGE.value,
        ModelStatus.IN_PRODUCTION.value,
        ModelStatus.SHIPPED.value,
    }
)


@dataclass
class HistoryEntryView:
    entry: StatusHistory
    changed_by_name: str | None


def validate_status(status: str) -> str:
    try:
        return ModelStatus(status).value
    except ValueError:
        raise InvalidArgumentError(f"Invalid status: {status}") from None


def ensure_model_visible(model: GarmentModel, viewer: User | None) -> None:
    """Factory users only see non-draft models assigned to their own factory."""
    if viewer is None or viewer.role != UserRole.FACTORY.value:
        return
    if (
        viewer.factory_id is None
        or model.assigned_factory_id != viewer.factory_id
        or str(model.status) not in FACTORY_VISIBLE_STATUSES
    ):
        raise ForbiddenError("Access denied")


class StatusTransitionService:
    def __init__(self, db: Session, dispatcher: NotificationDispatcher | None = None):
        self.db = db
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.model_repo = GarmentModelRepository(db)
        self.history_repo = StatusHistoryRepository(db)
        self.user_repo = UserRepository(db)

    def create_model(
        self,
        model_number: str,
        created_by: UUID | None,
        actor_role: str,
        collection_id: UUID | None = None,
        **fields: Any,
    ) -> GarmentModel:
        """Create a model in ``draft`` together with its initial history row."""
        if tier_for_role(actor_role) is not PrivilegeTier.FULL:
            for name in RESTRICTED_FIELDS:
                fields.pop(name, None)

        try:
            if self.model_repo.get_by_number(collection_id, model_number) is not None:
                raise InvalidArgumentError("Model number already exists in this collection")
            model = self.model_repo.create(
                collection_id=collection_id,
                model_number=model_number,
                designer_id=created_by,
                created_by=created_by,
                **{k: v for k, v in fields.items() if v is not None},
            )
            self.history_repo.append(
                model.id,  # type: ignore[arg-type]
                from_status=None,
                to_status=ModelStatus.DRAFT.value,
                changed_by=created_by,
            )
            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Creating model %s failed: %s", model_number, exc)
            raise InternalError() from exc

        self.db.refresh(model)
        return model

    def get_model(self, model_id: UUID, viewer: User | None = None) -> GarmentModel:
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            raise NotFoundError("Model", model_id)
        ensure_model_visible(model, viewer)
        return model

    def list_models(
        self,
        viewer: User | None = None,
        skip: int = 0,
        limit: int = 100,
        **filters: Any,
    ) -> tuple[list[GarmentModel], int]:
        """Return one page of models and the total matching count.

        ``filters`` are passed to the repository: collection_id, status,
        model_id and product_type.
        """
        if viewer is not None and viewer.role == UserRole.FACTORY.value:
            if viewer.factory_id is None:
                return [], 0
            filters["factory_id"] = viewer.factory_id
            filters["allowed_statuses"] = FACTORY_VISIBLE_STATUSES
        if filters.get("status") is not None:
            filters["status"] = validate_status(filters["status"])
        models = self.model_repo.get_all(skip=skip, limit=limit, **filters)
        return models, self.model_repo.count(**filters)

    def update_model(
        self,
        model_id: UUID,
        changed_by: UUID | None,
        actor_role: str,
        new_status: str | None = None,
        comment: str | None = None,
        **updates: Any,
    ) -> GarmentModel:
        """Apply field edits and an optional status change in one transaction.

        Fields passed as None keep their stored values.
        """
        if actor_role == UserRole.FACTORY.value:
            raise ForbiddenError("Factories cannot edit models")
        if tier_for_role(actor_role) is not PrivilegeTier.FULL:
            for name in RESTRICTED_FIELDS:
                updates.pop(name, None)
        if new_status is not None:
            new_status = validate_status(new_status)

        transitioned_from: str | None = None
        try:
            model = self.model_repo.get_for_update(model_id)
            if model is None:
                raise NotFoundError("Model", model_id)

            current = str(model.status)
            if new_status is not None and new_status != current:
                self.history_repo.append(
                    model_id,
                    from_status=current,
                    to_status=new_status,
                    changed_by=changed_by,
                    comment=comment,
                )
                self.model_repo.update_status(model, new_status)
                transitioned_from = current

            self.model_repo.apply_updates(model, updates)
            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Updating model %s failed: %s", model_id, exc)
            raise InternalError() from exc

        self.db.refresh(model)
        if transitioned_from is not None and new_status is not None:
            logger.info("Model %s: %s -> %s", model_id, transitioned_from, new_status)
            try:
                self.dispatcher.status_changed(model_id, new_status, changed_by)
            except Exception:
                logger.exception(
                    "Could not dispatch status notification for model %s", model_id
                )
        return model

    def set_status(
        self,
        model_id: UUID,
        new_status: str,
        changed_by: UUID | None,
        actor_role: str,
        comment: str | None = None,
        **updates: Any,
    ) -> GarmentModel:
        return self.update_model(
            model_id,
            changed_by,
            actor_role,
            new_status=new_status,
            comment=comment,
            **updates,
        )

    def assign_factory(self, model_id: UUID, factory_id: UUID | None) -> GarmentModel:
        try:
            model = self.model_repo.get_for_update(model_id)
            if model is None:
                raise NotFoundError("Model", model_id)
            if factory_id is not None and self.user_repo.get_factory(factory_id) is None:
                raise NotFoundError("Factory", factory_id)
            self.model_repo.assign_factory(model, factory_id)
            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError() from exc

        self.db.refresh(model)
        logger.info("Model %s assigned to factory %s", model_id, factory_id)
        return model

    def delete_model(self, model_id: UUID) -> None:
        """Hard delete; history, approvals and notification records cascade."""
        try:
            model = self.model_repo.get_by_id(model_id)
            if model is None:
                raise NotFoundError("Model", model_id)
            self.model_repo.delete(model)
            self.db.commit()
        except PLMError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError() from exc

    def get_history(
        self, model_id: UUID, viewer: User | None = None
    ) -> list[HistoryEntryView]:
        self.get_model(model_id, viewer)
        entries = self.history_repo.list_for_model(model_id)
        names = self.user_repo.get_display_names(
            [e.changed_by for e in entries]  # type: ignore[misc]
        )
        return [
            HistoryEntryView(entry=e, changed_by_name=names.get(e.changed_by))  # type: ignore[arg-type]
            for e in entries
        ]
