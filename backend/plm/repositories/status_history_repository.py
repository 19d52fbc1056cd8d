"""Repository for the append-only status history log."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from plm.models.status_history import HistoryChangeType, StatusHistory


class StatusHistoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        model_id: UUID,
        from_status: str | None,
        to_status: str,
        changed_by: UUID | None,
        comment: str | None = None,
        change_type: HistoryChangeType = HistoryChangeType.STATUS_CHANGE,
    ) -> StatusHistory:
        entry = StatusHistory(
            model_id=model_id,
            change_type=change_type.value,
            from_status=from_status,
            to_status=to_status,
            changed_by=changed_by,
            comment=comment,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_for_model(self, model_id: UUID) -> list[StatusHistory]:
        """Entries for one model, newest first."""
        return (
            self.db.query(StatusHistory)
            .filter(StatusHistory.model_id == model_id)
            .order_by(StatusHistory.created_at.desc())
            .all()
        )
