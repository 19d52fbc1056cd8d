"""Request identity and permission dependencies.

Token issuance lives outside this service; an upstream gateway authenticates
the caller and forwards the user id in the ``X-User-Id`` header.
"""

from collections.abc import Callable
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from plm.core.database import get_db
from plm.core.permissions import Permission, PrivilegeTier, is_allowed, tier_for_role
from plm.models.user import User
from plm.repositories.user_permission_repository import UserPermissionRepository
from plm.repositories.user_repository import UserRepository


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the authenticated user from the ``X-User-Id`` header."""
    raw_id = request.headers.get("X-User-Id")
    if not raw_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        user_id = UUID(raw_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header") from None

    user = UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return user


def has_permission(db: Session, user: User, permission: Permission) -> bool:
    role = str(user.role)
    if tier_for_role(role) is PrivilegeTier.FULL:
        return True
    flags = UserPermissionRepository(db).get_or_create_defaults(user)
    return is_allowed(role, flags, permission)


def require_permission(permission: Permission) -> Callable[..., User]:
    """Dependency factory: reject the request with 403 unless ``permission`` is held."""

    def dependency(
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if not has_permission(db, user, permission):
            raise HTTPException(
                status_code=403,
                detail="You do not have permission to perform this action",
            )
        return user

    return dependency
