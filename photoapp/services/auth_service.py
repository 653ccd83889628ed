"""Auth service: registration, login and token refresh."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from photoapp.core.exceptions import AuthenticationError, AuthorizationError, ResourceConflictError
from photoapp.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from photoapp.db.base import utcnow
from photoapp.models.user import User
from photoapp.services.admin_service import admin_service

logger = logging.getLogger("photoapp.auth")


def _token_data(user: User) -> Dict[str, Any]:
    return {"sub": str(user.id), "email": user.email}


class AuthService:
    """Handles authentication and account creation."""

    @staticmethod
    def register(
        db: Session, username: str, email: str, password: str, display_name: str,
    ) -> User:
        """Create a regular member account.

        Raises:
            ResourceConflictError: username or email already taken.
        """
        username = username.strip()
        email = email.lower().strip()
        existing = (
            db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )
        if existing:
            field = "email" if existing.email == email else "username"
            raise ResourceConflictError(f"User with this {field} already exists")

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            display_name=display_name.strip(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    @staticmethod
    def authenticate(
        db: Session, email: str, password: str, client_ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Check credentials and issue an access/refresh token pair.

        Raises:
            AuthenticationError: If credentials are invalid.
            AuthorizationError: If the account is banned.
        """
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")
        if user.is_banned:
            raise AuthorizationError("Account is banned")

        user.last_login_at = utcnow()
        db.commit()

        return {
            "access_token": create_access_token(_token_data(user)),
            "refresh_token": create_refresh_token(_token_data(user)),
            "token_type": "bearer",
            "user": admin_service.enrich_user(db, user, client_ip),
        }

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Dict[str, Any]:
        payload = decode_token(refresh_token, expected_type="refresh")
        user = db.query(User).filter(User.id == int(payload["sub"])).first()
        if not user:
            raise AuthenticationError("User not found")
        if user.is_banned:
            raise AuthorizationError("Account is banned")
        return {
            "access_token": create_access_token(_token_data(user)),
            "token_type": "bearer",
        }


auth_service = AuthService()
