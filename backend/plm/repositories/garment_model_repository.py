"""Repository for garment model reads and writes.

Write methods flush but do not commit: services own the unit of work so the
status update and its history row land in the same transaction.
"""

from __future__ import annotations

from collections.abc import Collection as Collection_
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Query, Session

from plm.models.collection import Collection
from plm.models.garment_model import GarmentModel, ModelStatus


@dataclass
class ModelSummary:
    """The subset of a model needed to format notifications."""

    id: UUID
    model_number: str
    model_name: str | None
    collection_name: str | None
    assigned_factory_id: UUID | None


# Columns that may be changed through a general model update
EDITABLE_FIELDS = (
    "model_name",
    "product_type",
    "category",
    "fit_type",
    "product_group",
    "product_group_code",
)


class GarmentModelRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        collection_id: UUID | None = None,
        status: str | None = None,
        model_id: UUID | None = None,
        product_type: str | None = None,
        factory_id: UUID | None = None,
        allowed_statuses: Collection_[str] | None = None,
    ) -> Query[GarmentModel]:
        query = self.db.query(GarmentModel)
        if model_id is not None:
            query = query.filter(GarmentModel.id == model_id)
        if collection_id is not None:
            query = query.filter(GarmentModel.collection_id == collection_id)
        if status is not None:
            query = query.filter(GarmentModel.status == status)
        if product_type is not None:
            query = query.filter(GarmentModel.product_type == product_type)
        if factory_id is not None:
            query = query.filter(GarmentModel.assigned_factory_id == factory_id)
        if allowed_statuses is not None:
            query = query.filter(GarmentModel.status.in_(list(allowed_statuses)))
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        collection_id: UUID | None = None,
        status: str | None = None,
        model_id: UUID | None = None,
        product_type: str | None = None,
        factory_id: UUID | None = None,
        allowed_statuses: Collection_[str] | None = None,
    ) -> list[GarmentModel]:
        """Newest first. ``factory_id`` and ``allowed_statuses`` narrow a factory user's view."""
        query = self._filtered(
            collection_id, status, model_id, product_type, factory_id, allowed_statuses
        )
        return (
            query.order_by(GarmentModel.created_at.desc(), GarmentModel.model_number)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(
        self,
        collection_id: UUID | None = None,
        status: str | None = None,
        model_id: UUID | None = None,
        product_type: str | None = None,
        factory_id: UUID | None = None,
        allowed_statuses: Collection_[str] | None = None,
    ) -> int:
        return self._filtered(
            collection_id, status, model_id, product_type, factory_id, allowed_statuses
        ).count()

    def get_by_id(self, model_id: UUID) -> GarmentModel | None:
        return self.db.query(GarmentModel).filter(GarmentModel.id == model_id).first()

    def get_for_update(self, model_id: UUID) -> GarmentModel | None:
        """Load the model with a row lock held until the transaction ends."""
        return (
            self.db.query(GarmentModel)
            .filter(GarmentModel.id == model_id)
            .with_for_update()
            .first()
        )

    def get_by_number(self, collection_id: UUID | None, model_number: str) -> GarmentModel | None:
        return (
            self.db.query(GarmentModel)
            .filter(
                GarmentModel.collection_id == collection_id,
                GarmentModel.model_number == model_number,
            )
            .first()
        )

    def get_summary(self, model_id: UUID) -> ModelSummary | None:
        row = (
            self.db.query(GarmentModel, Collection.name)
            .outerjoin(Collection, GarmentModel.collection_id == Collection.id)
            .filter(GarmentModel.id == model_id)
            .first()
        )
        if row is None:
            return None
        model, collection_name = row
        return ModelSummary(
            id=model.id,
            model_number=str(model.model_number),
            model_name=model.model_name,
            collection_name=collection_name,
            assigned_factory_id=model.assigned_factory_id,
        )

    def create(self, **values: Any) -> GarmentModel:
        model = GarmentModel(status=ModelStatus.DRAFT.value, **values)
        self.db.add(model)
        self.db.flush()
        return model

    def apply_updates(self, model: GarmentModel, updates: dict[str, Any]) -> GarmentModel:
        """Set each editable field that has a non-None value; others keep their stored value."""
        for field in EDITABLE_FIELDS:
            value = updates.get(field)
            if value is not None:
                setattr(model, field, value)
        self.db.flush()
        return model

    def update_status(self, model: GarmentModel, new_status: str) -> None:
        model.status = new_status  # type: ignore[assignment]
        self.db.flush()

    def assign_factory(self, model: GarmentModel, factory_id: UUID | None) -> None:
        model.assigned_factory_id = factory_id  # type: ignore[assignment]
        self.db.flush()

    def delete(self, model: GarmentModel) -> None:
        self.db.delete(model)
        self.db.flush()
