"""JWT authentication and admin permission dependencies."""

import bcrypt
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.core.exceptions import forbidden, unauthorized
from photoapp.db.session import get_db
from photoapp.models.user import User
from photoapp.services.admin_service import AdminStatus, admin_service
from photoapp.services.audit_service import get_client_ip

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash."""
    if not hashed_password:
        return False
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRY_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, expected_type: str = "access") -> dict:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if payload.get("type") != expected_type:
        raise unauthorized("Invalid token type")
    return payload


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> int:
    """Extract user_id from the JWT Bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None:
        raise unauthorized("Invalid token payload")
    return int(user_id)


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Optional[int]:
    """Like get_current_user_id, but anonymous callers get None."""
    if credentials is None:
        return None
    return await get_current_user_id(credentials)


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """Load the authenticated user; banned accounts are rejected."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise unauthorized("User not found")
    if user.is_banned:
        raise forbidden("Account is banned")
    return user


@dataclass
class AdminPrincipal:
    """Authenticated admin plus the status their request was checked against."""

    user: User
    status: AdminStatus
    client_ip: Optional[str]

    @property
    def is_super_admin(self) -> bool:
        return self.status.is_super_admin


class RequirePermission:
    """Dependency that checks the caller's AdminRole.

    With no permission it only requires a valid admin role; with
    ``super_admin=True`` it requires the super_admin role; otherwise the
    named permission flag must be set (super admins pass every check).
    """

    def __init__(self, permission: Optional[str] = None, super_admin: bool = False):
        self.permission = permission
        self.super_admin = super_admin

    async def __call__(
        self,
        request: Request,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> AdminPrincipal:
        client_ip = get_client_ip(request)
        admin_status = admin_service.compute_admin_status(db, user.id, client_ip)
        principal = AdminPrincipal(user=user, status=admin_status, client_ip=client_ip)

        if not admin_status.is_admin:
            if admin_status.reason and admin_status.reason != "No admin role found":
                raise forbidden(f"Permission denied: {admin_status.reason}")
            raise forbidden("Admin access required")

        if self.super_admin:
            if not admin_status.is_super_admin:
                raise forbidden("Super admin access required")
            return principal

        if self.permission and not admin_service.has_permission(admin_status, self.permission):
            raise forbidden(f"Permission denied: {self.permission} required")

        return principal


# Convenience dependency factories
require_super_admin = RequirePermission(super_admin=True)
