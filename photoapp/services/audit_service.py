"""Audit service: append-only SystemLog trail for admin actions."""

import logging
from typing import Optional, Any, Dict

from fastapi import Request
from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.core.permissions import compare_permissions
from photoapp.models.system_log import SystemLog
from photoapp.models.user import User
from photoapp.services.admin_service import is_ip_allowed, is_valid_ip_entry

logger = logging.getLogger("photoapp.audit")

LOG_LEVELS = ("info", "warn", "error", "debug")


def is_trusted_proxy(host: Optional[str]) -> bool:
    if not host:
        return False
    trusted = [entry for entry in settings.TRUSTED_PROXIES if entry]
    if host in trusted:
        return True
    networks = [entry for entry in trusted if is_valid_ip_entry(entry)]
    return bool(networks) and is_ip_allowed(host, networks)


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP: the first X-Forwarded-For hop when the peer is a trusted proxy."""
    peer = request.client.host if request.client else None
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for and is_trusted_proxy(peer):
        return forwarded_for.split(",")[0].strip()
    return peer


def _user_label(user: Optional[User], fallback: Any = "unknown") -> str:
    if user is None:
        return str(fallback)
    return user.username or user.display_name or str(user.id)


class AuditService:
    """Records immutable SystemLog entries."""

    @staticmethod
    def log(
        db: Session,
        message: str,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> SystemLog:
        """Write a single log record.

        This method commits immediately to ensure the entry is never lost.
        """
        if level not in LOG_LEVELS:
            level = "info"
        entry = SystemLog(
            level=level,
            message=message,
            user_id=user_id,
            action=action,
            metadata_json=metadata or {},
        )
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def log_permission_change(
        db: Session,
        action: str,
        performed_by: Optional[User],
        target_user: Optional[User],
        target_user_id: int,
        old_role: Optional[Dict[str, Any]] = None,
        new_role: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        """Record a create/update/delete of an admin role.

        Never raises: a failed audit write is logged and reported as False
        so the role mutation itself still succeeds.
        """
        try:
            metadata: Dict[str, Any] = {
                "action": action,
                "target_user_id": target_user_id,
                "target_username": target_user.username if target_user else "unknown",
                "target_email": target_user.email if target_user else "unknown",
                "ip_address": ip_address or "unknown",
                "reason": reason,
            }
            target = _user_label(target_user, target_user_id)

            if action == "create" and new_role:
                metadata["role"] = new_role.get("role")
                metadata["permissions"] = new_role.get("permissions")
                metadata["granted_by"] = new_role.get("granted_by")
                message = f"Admin role created for {target} (role: {metadata['role']})"
            elif action == "update":
                changes = []
                if (old_role or {}).get("role") != (new_role or {}).get("role"):
                    metadata["role_change"] = {
                        "from": (old_role or {}).get("role"),
                        "to": (new_role or {}).get("role"),
                    }
                    changes.append(
                        f"role: {metadata['role_change']['from']} -> {metadata['role_change']['to']}"
                    )
                diff = compare_permissions(
                    (old_role or {}).get("permissions"), (new_role or {}).get("permissions"),
                )
                if diff["added"] or diff["removed"]:
                    metadata["permission_changes"] = {
                        "added": diff["added"],
                        "removed": diff["removed"],
                    }
                    if diff["added"]:
                        changes.append(f"added permissions: {', '.join(diff['added'])}")
                    if diff["removed"]:
                        changes.append(f"removed permissions: {', '.join(diff['removed'])}")
                metadata["role"] = (new_role or {}).get("role")
                metadata["permissions"] = (new_role or {}).get("permissions")
                suffix = f" ({'; '.join(changes)})" if changes else ""
                message = f"Admin role updated for {target}{suffix}"
            elif action == "delete" and old_role:
                metadata["role"] = old_role.get("role")
                metadata["permissions"] = old_role.get("permissions")
                message = f"Admin role deleted for {target} (role: {metadata['role']})"
            else:
                message = f"Permission change: {action} for {target}"

            AuditService.log(
                db,
                message=message,
                user_id=performed_by.id if performed_by else None,
                action=f"permission_{action}",
                metadata=metadata,
            )
            return True
        except Exception:
            db.rollback()
            logger.exception("Failed to log permission change (%s) for user %s", action, target_user_id)
            return False

    @staticmethod
    def query_logs(
        db: Session,
        level: Optional[str] = None,
        action: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """Query system logs with filters and pagination."""
        query = db.query(SystemLog)

        if level:
            query = query.filter(SystemLog.level == level)
        if action:
            query = query.filter(SystemLog.action == action)
        if search:
            query = query.filter(SystemLog.message.ilike(f"%{search}%"))

        total = query.count()
        logs = (
            query.order_by(SystemLog.created_at.desc(), SystemLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return {"logs": logs, "total": total}


audit_service = AuditService()
