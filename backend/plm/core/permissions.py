"""Authorization policy.

Permissions form a closed enumeration. Each flag is read through an explicit
accessor on ``UserPermission`` rather than by column name, and roles are
grouped into privilege tiers: the ``FULL`` tier holds every capability and
never consults stored flags.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from plm.models.user import UserRole
from plm.models.user_permission import UserPermission


class Permission(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_MODELS = "view_models"
    CREATE_MODELS = "create_models"
    EDIT_MODELS = "edit_models"
    DELETE_MODELS = "delete_models"
    EDIT_MODEL_STATUS = "edit_model_status"
    VIEW_FILES = "view_files"
    UPLOAD_FILES = "upload_files"
    DELETE_FILES = "delete_files"
    VIEW_COMMENTS = "view_comments"
    CREATE_COMMENTS = "create_comments"
    DELETE_ANY_COMMENTS = "delete_any_comments"
    VIEW_COLLECTIONS = "view_collections"
    EDIT_COLLECTIONS = "edit_collections"
    VIEW_USERS = "view_users"
    EDIT_USERS = "edit_users"


class PrivilegeTier(str, Enum):
    FULL = "full"
    STANDARD = "standard"


_FLAG_ACCESSORS: dict[Permission, Callable[[UserPermission], bool]] = {
    Permission.VIEW_DASHBOARD: lambda p: bool(p.can_view_dashboard),
    Permission.VIEW_MODELS: lambda p: bool(p.can_view_models),
    Permission.CREATE_MODELS: lambda p: bool(p.can_create_models),
    Permission.EDIT_MODELS: lambda p: bool(p.can_edit_models),
    Permission.DELETE_MODELS: lambda p: bool(p.can_delete_models),
    Permission.EDIT_MODEL_STATUS: lambda p: bool(p.can_edit_model_status),
    Permission.VIEW_FILES: lambda p: bool(p.can_view_files),
    Permission.UPLOAD_FILES: lambda p: bool(p.can_upload_files),
    Permission.DELETE_FILES: lambda p: bool(p.can_delete_files),
    Permission.VIEW_COMMENTS: lambda p: bool(p.can_view_comments),
    Permission.CREATE_COMMENTS: lambda p: bool(p.can_create_comments),
    Permission.DELETE_ANY_COMMENTS: lambda p: bool(p.can_delete_any_comments),
    Permission.VIEW_COLLECTIONS: lambda p: bool(p.can_view_collections),
    Permission.EDIT_COLLECTIONS: lambda p: bool(p.can_edit_collections),
    Permission.VIEW_USERS: lambda p: bool(p.can_view_users),
    Permission.EDIT_USERS: lambda p: bool(p.can_edit_users),
}

# Granted to every role
_BASELINE: frozenset[Permission] = frozenset(
    {
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_MODELS,
        Permission.VIEW_FILES,
        Permission.VIEW_COMMENTS,
        Permission.CREATE_COMMENTS,
        Permission.VIEW_COLLECTIONS,
    }
)

_ROLE_EXTRAS: dict[UserRole, frozenset[Permission]] = {
    UserRole.DESIGNER: frozenset(
        {
            Permission.CREATE_MODELS,
            Permission.EDIT_MODELS,
            Permission.UPLOAD_FILES,
            Permission.DELETE_FILES,
        }
    ),
    UserRole.CONSTRUCTOR: frozenset({Permission.EDIT_MODELS, Permission.UPLOAD_FILES}),
    UserRole.CHINA_OFFICE: frozenset({Permission.UPLOAD_FILES}),
    UserRole.FACTORY: frozenset(),
}

_FULL_TIER_ROLES: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.BUYER})


def tier_for_role(role: str) -> PrivilegeTier:
    try:
        user_role = UserRole(role)
    except ValueError:
        return PrivilegeTier.STANDARD
    return PrivilegeTier.FULL if user_role in _FULL_TIER_ROLES else PrivilegeTier.STANDARD


def default_permissions(role: str) -> frozenset[Permission]:
    """Capabilities a new user of ``role`` starts with."""
    if tier_for_role(role) is PrivilegeTier.FULL:
        return frozenset(Permission)
    try:
        extras = _ROLE_EXTRAS.get(UserRole(role), frozenset())
    except ValueError:
        extras = frozenset()
    return _BASELINE | extras


def default_flag_values(role: str) -> dict[str, bool]:
    """Column values for a freshly created ``UserPermission`` row."""
    granted = default_permissions(role)
    return {f"can_{perm.value}": perm in granted for perm in Permission}


def is_allowed(role: str, flags: UserPermission | None, permission: Permission) -> bool:
    if tier_for_role(role) is PrivilegeTier.FULL:
        return True
    if flags is None:
        return False
    return _FLAG_ACCESSORS[permission](flags)
