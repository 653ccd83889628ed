"""Admin role hierarchy and permission rules.

Roles form a strict ladder: ``moderator < admin < super_admin``. Each role
has a whitelist of permission flags it may hold; higher roles inherit the
whitelist of the role below them. ``super_admin`` implicitly holds every
permission, and only ``super_admin`` may manage other admin roles.

Nothing in this module raises on bad input: validation returns a
:class:`PermissionValidation` and callers decide what to do with it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional


MODERATOR = "moderator"
ADMIN = "admin"
SUPER_ADMIN = "super_admin"

VALID_ROLES = (SUPER_ADMIN, ADMIN, MODERATOR)


class Permission:
    """Permission flag names as stored on an admin role."""

    # User Management
    VIEW_USERS = "viewUsers"
    EDIT_USERS = "editUsers"
    DELETE_USERS = "deleteUsers"
    BAN_USERS = "banUsers"
    UNBAN_USERS = "unbanUsers"

    # Image Management
    VIEW_IMAGES = "viewImages"
    EDIT_IMAGES = "editImages"
    DELETE_IMAGES = "deleteImages"
    MODERATE_IMAGES = "moderateImages"

    # Category Management
    VIEW_CATEGORIES = "viewCategories"
    CREATE_CATEGORIES = "createCategories"
    EDIT_CATEGORIES = "editCategories"
    DELETE_CATEGORIES = "deleteCategories"

    # Admin Management
    VIEW_ADMINS = "viewAdmins"
    CREATE_ADMINS = "createAdmins"
    EDIT_ADMINS = "editAdmins"
    DELETE_ADMINS = "deleteAdmins"

    # Dashboard & Analytics
    VIEW_DASHBOARD = "viewDashboard"
    VIEW_ANALYTICS = "viewAnalytics"

    # Collections
    VIEW_COLLECTIONS = "viewCollections"
    MANAGE_COLLECTIONS = "manageCollections"

    # Favorites & Moderation
    MANAGE_FAVORITES = "manageFavorites"
    MODERATE_CONTENT = "moderateContent"

    # System & Logs
    VIEW_LOGS = "viewLogs"
    EXPORT_DATA = "exportData"
    MANAGE_SETTINGS = "manageSettings"


ALL_PERMISSIONS: List[str] = [
    Permission.VIEW_USERS,
    Permission.EDIT_USERS,
    Permission.DELETE_USERS,
    Permission.BAN_USERS,
    Permission.UNBAN_USERS,
    Permission.VIEW_IMAGES,
    Permission.EDIT_IMAGES,
    Permission.DELETE_IMAGES,
    Permission.MODERATE_IMAGES,
    Permission.VIEW_CATEGORIES,
    Permission.CREATE_CATEGORIES,
    Permission.EDIT_CATEGORIES,
    Permission.DELETE_CATEGORIES,
    Permission.VIEW_ADMINS,
    Permission.CREATE_ADMINS,
    Permission.EDIT_ADMINS,
    Permission.DELETE_ADMINS,
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_ANALYTICS,
    Permission.VIEW_COLLECTIONS,
    Permission.MANAGE_COLLECTIONS,
    Permission.MANAGE_FAVORITES,
    Permission.MODERATE_CONTENT,
    Permission.VIEW_LOGS,
    Permission.EXPORT_DATA,
    Permission.MANAGE_SETTINGS,
]

MODERATOR_ALLOWED_PERMISSIONS: List[str] = [
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_ANALYTICS,
    Permission.VIEW_USERS,
    Permission.VIEW_IMAGES,
    Permission.VIEW_CATEGORIES,
    Permission.VIEW_COLLECTIONS,
    Permission.MODERATE_IMAGES,
    Permission.MODERATE_CONTENT,
    Permission.MANAGE_FAVORITES,
    Permission.VIEW_LOGS,
]

ADMIN_ALLOWED_PERMISSIONS: List[str] = MODERATOR_ALLOWED_PERMISSIONS + [
    Permission.EDIT_USERS,
    Permission.DELETE_USERS,
    Permission.BAN_USERS,
    Permission.UNBAN_USERS,
    Permission.EDIT_IMAGES,
    Permission.DELETE_IMAGES,
    Permission.CREATE_CATEGORIES,
    Permission.EDIT_CATEGORIES,
    Permission.DELETE_CATEGORIES,
    Permission.MANAGE_COLLECTIONS,
    Permission.EXPORT_DATA,
    Permission.MANAGE_SETTINGS,
    Permission.VIEW_ADMINS,
]

# Only super_admin may hold these, whatever the whitelists say.
ADMIN_MANAGEMENT_PERMISSIONS = (
    Permission.CREATE_ADMINS,
    Permission.EDIT_ADMINS,
    Permission.DELETE_ADMINS,
)

DEFAULT_PERMISSIONS: Dict[str, bool] = {Permission.VIEW_DASHBOARD: True}

ROLE_DESCRIPTIONS = {
    MODERATOR: (
        "Moderators can view content, moderate images and content, and view logs. "
        "They cannot modify users, delete content, or manage system settings."
    ),
    ADMIN: (
        "Admins have full content management permissions including user management, "
        "content deletion, and system settings. They cannot create, edit, or delete admin roles."
    ),
    SUPER_ADMIN: "Super admins have all permissions including full admin role management.",
}


@dataclass
class PermissionValidation:
    """Outcome of checking a permission map against a role."""

    valid: bool
    errors: List[str] = field(default_factory=list)


def get_allowed_permissions(role: str) -> List[str]:
    """Return the permission whitelist for ``role`` (empty for unknown roles)."""
    if role == MODERATOR:
        return list(MODERATOR_ALLOWED_PERMISSIONS)
    if role == ADMIN:
        return list(ADMIN_ALLOWED_PERMISSIONS)
    if role == SUPER_ADMIN:
        return list(ALL_PERMISSIONS)
    return []


def is_permission_allowed_for_role(role: str, permission: str) -> bool:
    if role == SUPER_ADMIN:
        return True
    return permission in get_allowed_permissions(role)


def validate_permissions_for_role(
    role: str, permissions: Optional[Mapping[str, bool]]
) -> PermissionValidation:
    """Check every permission explicitly set to ``True`` against ``role``.

    Permissions set to ``False`` (or any non-``True`` value) are ignored.
    Non-super roles may never hold the admin-management permissions, even
    if a whitelist were to list them.
    """
    if role == SUPER_ADMIN:
        return PermissionValidation(valid=True)

    permissions = permissions or {}
    allowed = get_allowed_permissions(role)
    errors: List[str] = []

    for permission, value in permissions.items():
        if value is True and not is_permission_allowed_for_role(role, permission):
            errors.append(
                f"Permission '{permission}' is not allowed for role '{role}'. "
                f"Allowed permissions for {role}: {', '.join(allowed)}"
            )

    for permission in ADMIN_MANAGEMENT_PERMISSIONS:
        if permissions.get(permission) is True:
            errors.append(
                f"Permission '{permission}' is only allowed for super_admin role. "
                "Regular admins and moderators cannot manage admin roles."
            )

    return PermissionValidation(valid=not errors, errors=errors)


def get_inherited_permissions(role: str) -> List[str]:
    """Permissions a role receives from the role directly below it."""
    if role == ADMIN:
        return list(MODERATOR_ALLOWED_PERMISSIONS)
    if role == SUPER_ADMIN:
        return list(ADMIN_ALLOWED_PERMISSIONS)
    return []


def apply_role_inheritance(
    role: str, permissions: Optional[Mapping[str, bool]] = None
) -> Dict[str, bool]:
    """Return a copy of ``permissions`` with every inherited flag forced on.

    Caller-supplied ``False`` values for inherited keys are overridden.
    Applying this twice yields the same map as applying it once.
    """
    result = dict(permissions or {})
    for permission in get_inherited_permissions(role):
        result[permission] = True
    return result


def normalize_permissions(permissions: Optional[Mapping[str, bool]]) -> Dict[str, bool]:
    """Expand to the full catalogue, dropping unknown keys."""
    permissions = permissions or {}
    normalized = {}
    for permission in ALL_PERMISSIONS:
        default = DEFAULT_PERMISSIONS.get(permission, False)
        normalized[permission] = bool(permissions.get(permission, default))
    return normalized


def compare_permissions(
    old: Optional[Mapping[str, bool]], new: Optional[Mapping[str, bool]]
) -> Dict[str, List[str]]:
    """Diff two permission maps into added / removed / unchanged keys."""
    old = old or {}
    new = new or {}
    changes: Dict[str, List[str]] = {"added": [], "removed": [], "unchanged": []}

    for permission in sorted(set(old) | set(new)):
        old_value = bool(old.get(permission, False))
        new_value = bool(new.get(permission, False))
        if old_value == new_value:
            changes["unchanged"].append(permission)
        elif new_value:
            changes["added"].append(permission)
        else:
            changes["removed"].append(permission)

    return changes


def get_role_description(role: str) -> str:
    return ROLE_DESCRIPTIONS.get(role, "Unknown role")
