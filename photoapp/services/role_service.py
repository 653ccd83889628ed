"""Role service: create, update and delete admin roles.

Only super admins reach these methods (enforced by the router). Every
mutation invalidates the target user's permission cache and writes a
``permission_*`` SystemLog entry.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from photoapp.core.exceptions import (
    AuthorizationError,
    PermissionValidationError,
    ResourceNotFoundError,
    ValidationError,
)
from photoapp.core.permissions import (
    ADMIN,
    DEFAULT_PERMISSIONS,
    VALID_ROLES,
    apply_role_inheritance,
    validate_permissions_for_role,
)
from photoapp.db.base import utcnow
from photoapp.models.admin_role import AdminRole
from photoapp.models.user import User
from photoapp.services.admin_service import is_valid_ip_entry
from photoapp.services.audit_service import audit_service
from photoapp.services.permission_cache import permission_cache

logger = logging.getLogger("photoapp.roles")


def _check_role_name(role: str) -> None:
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")


def _check_permissions(role: str, permissions: Optional[Dict[str, bool]]) -> None:
    validation = validate_permissions_for_role(role, permissions)
    if not validation.valid:
        raise PermissionValidationError(
            "Invalid permissions for this role", errors=validation.errors,
        )


def _normalize_expiry(expires_at: Optional[datetime]) -> Optional[datetime]:
    """Convert to naive UTC and reject dates in the past."""
    if expires_at is None:
        return None
    if expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    if expires_at < utcnow():
        raise ValidationError("Expiration date cannot be in the past")
    return expires_at


def _validate_ips(allowed_ips: Optional[List[str]]) -> List[str]:
    cleaned = [str(ip or "").strip() for ip in (allowed_ips or [])]
    if not all(is_valid_ip_entry(ip) for ip in cleaned):
        raise ValidationError("One or more IP addresses are invalid")
    return cleaned


class RoleService:
    """Admin role lifecycle."""

    @staticmethod
    def list_roles(db: Session) -> List[AdminRole]:
        return (
            db.query(AdminRole)
            .order_by(AdminRole.created_at.desc(), AdminRole.id.desc())
            .all()
        )

    @staticmethod
    def get_role(db: Session, user_id: int) -> AdminRole:
        role = db.query(AdminRole).filter(AdminRole.user_id == user_id).first()
        if not role:
            raise ResourceNotFoundError("Admin role not found")
        return role

    @staticmethod
    def create_role(
        db: Session,
        actor: Optional[User],
        user_id: int,
        role: Optional[str] = None,
        permissions: Optional[Dict[str, bool]] = None,
        expires_at: Optional[datetime] = None,
        active: Optional[bool] = None,
        allowed_ips: Optional[List[str]] = None,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AdminRole:
        """Grant an admin role.

        ``actor=None`` creates a system role (``is_system``) which the API
        can never edit or delete afterwards.

        Raises:
            ValidationError: bad role name, past expiry, malformed IPs, or
                the user already holds a role.
            PermissionValidationError: permissions not allowed for the role.
            ResourceNotFoundError: the user does not exist.
        """
        selected_role = role or ADMIN
        _check_role_name(selected_role)
        if permissions:
            _check_permissions(selected_role, permissions)

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError("User not found")

        existing = db.query(AdminRole).filter(AdminRole.user_id == user_id).first()
        if existing:
            raise ValidationError("User already has an admin role")

        final_permissions = apply_role_inheritance(
            selected_role, {**DEFAULT_PERMISSIONS, **(permissions or {})},
        )
        expiry = _normalize_expiry(expires_at)
        ips = _validate_ips(allowed_ips)

        admin_role = AdminRole(
            user_id=user_id,
            role=selected_role,
            permissions=final_permissions,
            granted_by=actor.id if actor else None,
            is_system=actor is None,
            expires_at=expiry,
            active=True if active is None else active,
            allowed_ips=ips,
        )
        db.add(admin_role)
        db.commit()
        db.refresh(admin_role)

        permission_cache.invalidate_user(user_id)
        audit_service.log_permission_change(
            db,
            action="create",
            performed_by=actor,
            target_user=user,
            target_user_id=user_id,
            new_role={
                "role": admin_role.role,
                "permissions": admin_role.permissions,
                "granted_by": admin_role.granted_by,
            },
            reason=reason,
            ip_address=ip_address,
        )
        logger.info("Granted %s role to user %s", selected_role, user_id)
        return admin_role

    @staticmethod
    def update_role(
        db: Session,
        actor: User,
        user_id: int,
        changes: Dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> AdminRole:
        """Apply a partial update.

        ``changes`` holds only the fields the caller actually sent, so an
        explicit ``expires_at: None`` clears the expiry and ``allowed_ips: []``
        lifts the IP restriction.
        """
        admin_role = RoleService.get_role(db, user_id)
        if admin_role.is_system:
            raise AuthorizationError("Cannot modify a system-created role")

        old_role = {"role": admin_role.role, "permissions": dict(admin_role.permissions or {})}

        new_role_name = changes.get("role")
        if new_role_name is not None:
            _check_role_name(new_role_name)
        target_role = new_role_name or admin_role.role

        new_permissions = changes.get("permissions")
        if new_role_name is not None or new_permissions is not None:
            merged = {**(admin_role.permissions or {}), **(new_permissions or {})}
            merged = apply_role_inheritance(target_role, merged)
            _check_permissions(target_role, merged)
            admin_role.role = target_role
            admin_role.permissions = merged

        if "expires_at" in changes:
            admin_role.expires_at = _normalize_expiry(changes["expires_at"])

        if changes.get("active") is not None:
            admin_role.active = changes["active"]

        if "allowed_ips" in changes:
            admin_role.allowed_ips = _validate_ips(changes["allowed_ips"])

        db.commit()
        db.refresh(admin_role)

        permission_cache.invalidate_user(user_id)
        audit_service.log_permission_change(
            db,
            action="update",
            performed_by=actor,
            target_user=admin_role.user,
            target_user_id=user_id,
            old_role=old_role,
            new_role={"role": admin_role.role, "permissions": dict(admin_role.permissions or {})},
            reason=changes.get("reason"),
            ip_address=ip_address,
        )
        return admin_role

    @staticmethod
    def delete_role(
        db: Session,
        actor: User,
        user_id: int,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        admin_role = RoleService.get_role(db, user_id)
        if admin_role.is_system:
            raise AuthorizationError("Cannot delete a system-created role")

        old_role = {"role": admin_role.role, "permissions": dict(admin_role.permissions or {})}
        target_user = admin_role.user

        db.delete(admin_role)
        db.commit()

        permission_cache.invalidate_user(user_id)
        audit_service.log_permission_change(
            db,
            action="delete",
            performed_by=actor,
            target_user=target_user,
            target_user_id=user_id,
            old_role=old_role,
            reason=reason,
            ip_address=ip_address,
        )
        logger.info("Removed admin role from user %s", user_id)


role_service = RoleService()
