"""
Unit tests for the static role -> permission table.
"""
import pytest

from gemquest.core.permissions import (
    ADMIN_ROLES,
    CLIENT_ADMIN,
    CLIENT_MEMBER_ROLES,
    COLLABORATOR,
    DEVELOPER,
    PROJECT_MANAGER,
    ROLE_PERMISSIONS,
    SEED_ROLES,
    SUPER_ADMIN,
    VIEWER,
    permissions_for,
)


class TestRolePermissionTable:

    def test_every_seeded_role_has_permissions(self):
        assert {name for name, _ in SEED_ROLES} == set(ROLE_PERMISSIONS)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_PERMISSIONS[VIEWER] = frozenset({"delete"})  # type: ignore[index]

    @pytest.mark.parametrize(
        "role, expected",
        [
            (SUPER_ADMIN, {"create", "read", "update", "delete", "manage"}),
            (CLIENT_ADMIN, {"create", "read", "update", "delete"}),
            (PROJECT_MANAGER, {"create", "read", "update"}),
            (DEVELOPER, {"read", "update"}),
            (VIEWER, {"read"}),
            (COLLABORATOR, {"read", "execute"}),
        ],
    )
    def test_role_permissions(self, role, expected):
        assert ROLE_PERMISSIONS[role] == expected

    def test_admin_role_sets(self):
        assert ADMIN_ROLES == {CLIENT_ADMIN, SUPER_ADMIN}
        assert COLLABORATOR not in CLIENT_MEMBER_ROLES
        assert ADMIN_ROLES <= CLIENT_MEMBER_ROLES


class TestPermissionsFor:

    def test_union_of_roles(self):
        assert permissions_for([VIEWER, DEVELOPER]) == {"read", "update"}
        assert permissions_for([COLLABORATOR, VIEWER]) == {"read", "execute"}

    def test_empty_and_unknown_roles_imply_nothing(self):
        assert permissions_for([]) == frozenset()
        assert permissions_for(["Not A Role"]) == frozenset()
