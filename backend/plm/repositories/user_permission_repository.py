from __future__ import annotations

from sqlalchemy.orm import Session

from plm.core.permissions import default_flag_values
from plm.models.user import User
from plm.models.user_permission import UserPermission


class UserPermissionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user: User) -> UserPermission | None:
        return (
            self.db.query(UserPermission)
            .filter(UserPermission.user_id == user.id)
            .first()
        )

    def get_or_create_defaults(self, user: User) -> UserPermission:
        """Return the user's flags, creating the role defaults on first access."""
        flags = self.get(user)
        if flags is not None:
            return flags
        flags = UserPermission(user_id=user.id, **default_flag_values(str(user.role)))
        self.db.add(flags)
        self.db.commit()
        self.db.refresh(flags)
        return flags
