"""Tests for the role permission policy and lazily created defaults."""

import pytest

from plm.core.auth import has_permission
from plm.core.permissions import (
    Permission,
    PrivilegeTier,
    default_flag_values,
    default_permissions,
    is_allowed,
    tier_for_role,
)
from plm.models.user import UserRole
from plm.models.user_permission import UserPermission
from plm.repositories.user_permission_repository import UserPermissionRepository


class TestTierForRole:
    @pytest.mark.parametrize("role", ["admin", "buyer"])
    def test_full_tier(self, role):
        assert tier_for_role(role) is PrivilegeTier.FULL

    @pytest.mark.parametrize("role", ["designer", "constructor", "china_office", "factory"])
    def test_standard_tier(self, role):
        assert tier_for_role(role) is PrivilegeTier.STANDARD

    def test_unknown_role_is_standard(self):
        assert tier_for_role("intern") is PrivilegeTier.STANDARD


class TestDefaultPermissions:
    def test_full_tier_gets_everything(self):
        assert default_permissions("buyer") == frozenset(Permission)

    def test_designer(self):
        perms = default_permissions("designer")
        assert Permission.CREATE_MODELS in perms
        assert Permission.EDIT_MODELS in perms
        assert Permission.DELETE_MODELS not in perms
        assert Permission.EDIT_USERS not in perms

    def test_factory_has_baseline_only(self):
        perms = default_permissions("factory")
        assert Permission.VIEW_MODELS in perms
        assert Permission.CREATE_COMMENTS in perms
        assert Permission.EDIT_MODELS not in perms
        assert Permission.UPLOAD_FILES not in perms

    def test_flag_values_cover_every_column(self):
        flags = default_flag_values("constructor")
        assert len(flags) == len(Permission)
        assert flags["can_edit_models"] is True
        assert flags["can_create_models"] is False
        for name in flags:
            assert hasattr(UserPermission, name)


class TestIsAllowed:
    def test_full_tier_ignores_flags(self):
        assert is_allowed("admin", None, Permission.DELETE_MODELS) is True

    def test_standard_without_flags_denied(self):
        assert is_allowed("designer", None, Permission.VIEW_MODELS) is False

    def test_reads_stored_flag(self):
        flags = UserPermission(**default_flag_values("china_office"))
        assert is_allowed("china_office", flags, Permission.UPLOAD_FILES) is True
        assert is_allowed("china_office", flags, Permission.EDIT_MODELS) is False


class TestLazyDefaults:
    def test_created_on_first_check(self, db_session, make_user):
        designer = make_user(UserRole.DESIGNER)
        repo = UserPermissionRepository(db_session)
        assert repo.get(designer) is None

        assert has_permission(db_session, designer, Permission.CREATE_MODELS) is True

        stored = repo.get(designer)
        assert stored is not None
        assert stored.can_create_models is True
        assert stored.can_delete_models is False

    def test_stored_flags_take_precedence(self, db_session, make_user):
        constructor = make_user(UserRole.CONSTRUCTOR)
        flags = UserPermissionRepository(db_session).get_or_create_defaults(constructor)
        flags.can_edit_models = False
        db_session.commit()

        assert has_permission(db_session, constructor, Permission.EDIT_MODELS) is False

    def test_full_tier_needs_no_row(self, db_session, make_user):
        buyer = make_user(UserRole.BUYER)

        assert has_permission(db_session, buyer, Permission.EDIT_USERS) is True
        assert UserPermissionRepository(db_session).get(buyer) is None
