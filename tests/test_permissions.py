import pytest

from photoapp.core.permissions import (
    ADMIN_ALLOWED_PERMISSIONS,
    ALL_PERMISSIONS,
    MODERATOR_ALLOWED_PERMISSIONS,
    VALID_ROLES,
    apply_role_inheritance,
    compare_permissions,
    get_allowed_permissions,
    get_inherited_permissions,
    get_role_description,
    is_permission_allowed_for_role,
    normalize_permissions,
    validate_permissions_for_role,
)


def test_catalogue_has_every_flag_once():
    assert len(ALL_PERMISSIONS) == 26
    assert len(set(ALL_PERMISSIONS)) == 26


def test_whitelists_are_nested():
    assert set(MODERATOR_ALLOWED_PERMISSIONS) < set(ADMIN_ALLOWED_PERMISSIONS) < set(ALL_PERMISSIONS)
    assert get_allowed_permissions("super_admin") == ALL_PERMISSIONS
    assert get_allowed_permissions("owner") == []


def test_admin_whitelist_never_includes_admin_management():
    for flag in ("createAdmins", "editAdmins", "deleteAdmins"):
        assert flag not in ADMIN_ALLOWED_PERMISSIONS
        assert not is_permission_allowed_for_role("admin", flag)
    assert is_permission_allowed_for_role("super_admin", "createAdmins")


@pytest.mark.parametrize("permissions", [
    None,
    {},
    {"createAdmins": True, "deleteAdmins": True},
    {"madeUp": True},
])
def test_super_admin_is_always_valid(permissions):
    result = validate_permissions_for_role("super_admin", permissions)
    assert result.valid
    assert result.errors == []


def test_moderator_cannot_delete_users():
    result = validate_permissions_for_role("moderator", {"deleteUsers": True})
    assert not result.valid
    assert "deleteUsers" in result.errors[0]


def test_admin_cannot_create_admins():
    result = validate_permissions_for_role("admin", {"createAdmins": True})
    assert not result.valid
    # whitelist error plus the admin-management carve-out
    assert len(result.errors) == 2
    assert any("only allowed for super_admin" in e for e in result.errors)


def test_false_values_are_ignored():
    result = validate_permissions_for_role("moderator", {"deleteUsers": False, "createAdmins": False})
    assert result.valid


def test_inheritance_chain():
    assert get_inherited_permissions("moderator") == []
    assert get_inherited_permissions("admin") == MODERATOR_ALLOWED_PERMISSIONS
    assert get_inherited_permissions("super_admin") == ADMIN_ALLOWED_PERMISSIONS


def test_inherited_permissions_forced_true():
    result = apply_role_inheritance("admin", {"viewUsers": False, "banUsers": True})
    assert result["viewUsers"] is True
    assert result["banUsers"] is True
    assert all(result[p] is True for p in MODERATOR_ALLOWED_PERMISSIONS)


def test_inheritance_does_not_mutate_input():
    original = {"viewUsers": False}
    apply_role_inheritance("admin", original)
    assert original == {"viewUsers": False}


@pytest.mark.parametrize("role", VALID_ROLES)
@pytest.mark.parametrize("permissions", [None, {}, {"viewLogs": False, "exportData": True}])
def test_inheritance_is_idempotent(role, permissions):
    once = apply_role_inheritance(role, permissions)
    assert apply_role_inheritance(role, once) == once


def test_normalize_fills_catalogue_and_drops_unknown():
    result = normalize_permissions({"banUsers": True, "bogus": True})
    assert set(result) == set(ALL_PERMISSIONS)
    assert result["banUsers"] is True
    assert result["viewDashboard"] is True
    assert result["deleteUsers"] is False
    assert "bogus" not in result


def test_compare_permissions():
    diff = compare_permissions(
        {"viewUsers": True, "banUsers": True},
        {"viewUsers": True, "deleteUsers": True},
    )
    assert diff == {
        "added": ["deleteUsers"],
        "removed": ["banUsers"],
        "unchanged": ["viewUsers"],
    }


def test_role_descriptions():
    assert "all permissions" in get_role_description("super_admin")
    assert get_role_description("nobody") == "Unknown role"
