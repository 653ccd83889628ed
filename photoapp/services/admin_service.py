"""Admin status resolution: derives admin flags from AdminRole.

``User`` carries no admin columns; whether someone is an admin (and which
permissions they hold right now) is always computed here from their
AdminRole, the current time, and the client IP.
"""

import ipaddress
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from photoapp.core.permissions import SUPER_ADMIN
from photoapp.db.base import utcnow
from photoapp.models.admin_role import AdminRole
from photoapp.models.user import User
from photoapp.services.permission_cache import PermissionCache, permission_cache

logger = logging.getLogger("photoapp.admin")


@dataclass
class AdminStatus:
    """Derived admin status for one user (and optionally one client IP)."""

    is_admin: bool
    is_super_admin: bool
    role: Optional[Dict[str, Any]]
    valid: bool
    reason: Optional[str] = None

    @property
    def permissions(self) -> Dict[str, bool]:
        if not self.role:
            return {}
        return dict(self.role.get("permissions") or {})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdminStatus":
        return cls(**data)


def _parse_ip(value: str):
    """Parse an address, tolerating ``host:port`` and ``[v6]:port`` forms."""
    value = value.strip()
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        pass
    if value.startswith("["):
        return ipaddress.ip_address(value[1:value.index("]")])
    if value.count(":") == 1:
        return ipaddress.ip_address(value.split(":")[0])
    raise ValueError(f"Invalid IP address: {value}")


def is_valid_ip_entry(entry: str) -> bool:
    """True for a bare IPv4/IPv6 address or a CIDR range."""
    try:
        if "/" in entry:
            ipaddress.ip_network(entry.strip(), strict=False)
        else:
            ipaddress.ip_address(entry.strip())
        return True
    except ValueError:
        return False


def is_ip_allowed(client_ip: str, allowed_ips: Iterable[str]) -> bool:
    """Match ``client_ip`` against exact addresses and CIDR ranges.

    An empty allow-list means no restriction. Unparseable client addresses
    never match.
    """
    allowed_ips = [entry for entry in (allowed_ips or []) if entry]
    if not allowed_ips:
        return True

    try:
        address = _parse_ip(client_ip)
    except (ValueError, IndexError):
        return False
    # dual-stack listeners report IPv4 peers as ::ffff:a.b.c.d
    if address.version == 6 and address.ipv4_mapped:
        address = address.ipv4_mapped

    for entry in allowed_ips:
        try:
            if "/" in entry:
                network = ipaddress.ip_network(entry.strip(), strict=False)
                if address.version == network.version and address in network:
                    return True
            elif address == ipaddress.ip_address(entry.strip()):
                return True
        except ValueError:
            logger.warning("Ignoring malformed allowed IP entry %r", entry)
    return False


def is_admin_role_valid(
    role: Optional[AdminRole], client_ip: Optional[str] = None, now: Optional[datetime] = None,
) -> Tuple[bool, Optional[str]]:
    """Check that a role is active, unexpired, and usable from ``client_ip``."""
    if role is None:
        return False, "No admin role found"

    if role.active is False:
        return False, "Admin role is inactive"

    now = now or utcnow()
    if role.expires_at is not None and role.expires_at < now:
        return False, "Admin role has expired"

    if client_ip and role.allowed_ips:
        if not is_ip_allowed(client_ip, role.allowed_ips):
            return False, "Access denied from this IP address"

    return True, None


class AdminService:
    """Computes and caches admin status."""

    def __init__(self, cache: PermissionCache):
        self.cache = cache

    def compute_admin_status(
        self, db: Session, user_id: int, client_ip: Optional[str] = None,
    ) -> AdminStatus:
        cached = self.cache.get(user_id, client_ip)
        if cached:
            return AdminStatus.from_dict(cached)

        role = db.query(AdminRole).filter(AdminRole.user_id == user_id).first()
        valid, reason = is_admin_role_valid(role, client_ip)

        if role is None or not valid:
            status = AdminStatus(
                is_admin=False, is_super_admin=False, role=None, valid=False, reason=reason,
            )
        else:
            status = AdminStatus(
                is_admin=True,
                is_super_admin=role.role == SUPER_ADMIN,
                role=role.to_dict(),
                valid=True,
            )

        ttl = self.cache.ttl_seconds
        if role is not None and valid and role.expires_at is not None:
            remaining = int((role.expires_at - utcnow()).total_seconds())
            ttl = min(ttl, max(remaining, 0))
        self.cache.set(user_id, status.to_dict(), client_ip, ttl_seconds=ttl)
        return status

    @staticmethod
    def has_permission(status: AdminStatus, permission: str) -> bool:
        if not status.valid or not status.role:
            return False
        if status.is_super_admin or status.role.get("role") == SUPER_ADMIN:
            return True
        return status.permissions.get(permission) is True

    def enrich_user(
        self, db: Session, user: User, client_ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Public user view with derived admin flags and permissions."""
        status = self.compute_admin_status(db, user.id, client_ip)
        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "display_name": user.display_name,
            "avatar_url": user.avatar_url,
            "bio": user.bio,
            "is_banned": user.is_banned,
            "banned_at": user.banned_at,
            "ban_reason": user.ban_reason,
            "created_at": user.created_at,
            "is_admin": status.is_admin,
            "is_super_admin": status.is_super_admin,
            "admin_role": status.role["role"] if status.role else None,
            "permissions": status.permissions if status.role else None,
        }


admin_service = AdminService(permission_cache)
