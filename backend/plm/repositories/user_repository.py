"""Repository for users, factories and notification recipient lookup."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from plm.models.user import Factory, User, UserRole


@dataclass(frozen=True)
class NotificationRecipient:
    user_id: UUID
    external_messaging_id: str
    display_name: str
    role: str


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_factory(self, factory_id: UUID) -> Factory | None:
        return self.db.query(Factory).filter(Factory.id == factory_id).first()

    def get_display_names(self, user_ids: list[UUID]) -> dict[UUID, str]:
        ids = [uid for uid in user_ids if uid is not None]
        if not ids:
            return {}
        rows = self.db.query(User.id, User.full_name).filter(User.id.in_(ids)).all()
        return {user_id: str(name) for user_id, name in rows}

    def find_notification_recipients(
        self,
        role: str,
        factory_id: UUID | None = None,
    ) -> list[NotificationRecipient]:
        """Active users of ``role`` that have a WeChat identity configured.

        For the factory role the lookup is scoped to ``factory_id``.
        """
        query = self.db.query(User).filter(
            User.role == role,
            User.is_active == True,  # noqa: E712
            User.wechat_user_id.isnot(None),
            User.wechat_user_id != "",
        )
        if role == UserRole.FACTORY.value:
            query = query.filter(User.factory_id == factory_id)
        return [
            NotificationRecipient(
                user_id=user.id,  # type: ignore[arg-type]
                external_messaging_id=str(user.wechat_user_id),
                display_name=str(user.full_name),
                role=str(user.role),
            )
            for user in query.order_by(User.created_at.asc()).all()
        ]
