from types import SimpleNamespace

import pytest

from venue_crm.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    Role,
    can_access_own_resource,
    can_view_all_resources,
    get_user_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
)


def make_user(role, user_id=1):
    return SimpleNamespace(id=user_id, role=role)


class TestRolePermissions:
    def test_admin_has_every_permission(self):
        admin = make_user("admin")
        assert all(has_permission(admin, p) for p in Permission)

    def test_consultant_permissions(self):
        consultant = make_user("consultant")
        assert has_permission(consultant, Permission.CREATE_CLIENT)
        assert has_permission(consultant, Permission.VIEW_REPORTS)
        assert not has_permission(consultant, Permission.MANAGE_USERS)
        assert not has_permission(consultant, Permission.VIEW_ALL_CLIENTS)
        assert not has_permission(consultant, Permission.VIEW_ALL_REPORTS)

    def test_unknown_role_has_nothing(self):
        stranger = make_user("guest")
        assert get_user_permissions("guest") == frozenset()
        assert not has_permission(stranger, Permission.VIEW_CLIENT)
        assert not has_any_permission(stranger, list(Permission))

    def test_any_and_all(self):
        consultant = make_user("consultant")
        assert has_any_permission(consultant, [Permission.MANAGE_USERS, Permission.VIEW_CLIENT])
        assert not has_all_permissions(consultant, [Permission.MANAGE_USERS, Permission.VIEW_CLIENT])
        assert has_all_permissions(consultant, [Permission.VIEW_CLIENT, Permission.VIEW_VENUE])

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_PERMISSIONS[Role.CONSULTANT] = frozenset(Permission)


class TestOwnership:
    def test_consultant_only_own(self):
        consultant = make_user("consultant", user_id=7)
        assert can_access_own_resource(consultant, 7)
        assert not can_access_own_resource(consultant, 8)
        assert not can_view_all_resources(consultant)

    def test_admin_sees_everything(self):
        admin = make_user("admin", user_id=1)
        assert can_access_own_resource(admin, 99)
        assert can_view_all_resources(admin)
