"""Seed the super-admin user and its system-created role from env vars."""

from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.core.permissions import SUPER_ADMIN
from photoapp.core.security import hash_password
from photoapp.models.admin_role import AdminRole
from photoapp.models.user import User
from photoapp.services.role_service import role_service


def seed_super_admin(db: Session) -> User:
    """Create the super admin if not already present.

    The role is created with no granting actor, which marks it as a system
    role that the API refuses to edit or delete.
    """
    user = db.query(User).filter(User.email == settings.SUPER_ADMIN_EMAIL).first()
    if user is None:
        user = User(
            username=settings.SUPER_ADMIN_USERNAME,
            email=settings.SUPER_ADMIN_EMAIL,
            hashed_password=hash_password(settings.SUPER_ADMIN_PASSWORD),
            display_name="Super Admin",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"Created super admin user: {settings.SUPER_ADMIN_EMAIL}")
    else:
        print(f"Super admin '{settings.SUPER_ADMIN_EMAIL}' already exists, skipping user.")

    if db.query(AdminRole).filter(AdminRole.user_id == user.id).first() is None:
        role_service.create_role(db, actor=None, user_id=user.id, role=SUPER_ADMIN, reason="seed")
        print("Granted system super_admin role")
    return user
