"""User administration: listing, profile edits, deletion and bans."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from photoapp.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from photoapp.db.base import utcnow
from photoapp.models.admin_role import AdminRole
from photoapp.models.image import Image
from photoapp.models.notification import Notification
from photoapp.models.user import User, user_favorites
from photoapp.models.user_activity import UserActivity
from photoapp.services.admin_service import admin_service
from photoapp.services.notification_service import notification_service
from photoapp.services.permission_cache import permission_cache
from photoapp.services.storage_service import storage_service

logger = logging.getLogger("photoapp.users")

DEFAULT_BAN_REASON = "No reason provided"


def _actor_label(user: User) -> str:
    return user.display_name or user.username


class UserService:
    """Admin-side user management."""

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError("User not found")
        return user

    @staticmethod
    def image_counts(db: Session, user_ids: List[int]) -> Dict[int, int]:
        if not user_ids:
            return {}
        rows = (
            db.query(Image.uploaded_by, func.count(Image.id))
            .filter(Image.uploaded_by.in_(user_ids))
            .group_by(Image.uploaded_by)
            .all()
        )
        return {user_id: count for user_id, count in rows}

    @staticmethod
    def list_users(
        db: Session,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Paginated users, newest first, with derived admin flags and image counts.

        Admin flags are resolved without a client IP, so IP-restricted admins
        still list as admins.
        """
        query = db.query(User)
        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.username.ilike(pattern),
                User.email.ilike(pattern),
                User.display_name.ilike(pattern),
            ))

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        counts = UserService.image_counts(db, [u.id for u in users])
        items = []
        for user in users:
            data = admin_service.enrich_user(db, user)
            data["image_count"] = counts.get(user.id, 0)
            items.append(data)
        return {"users": items, "total": total}

    @staticmethod
    def get_user_detail(db: Session, user_id: int) -> Dict[str, Any]:
        user = UserService.get_user(db, user_id)
        data = admin_service.enrich_user(db, user)
        data["image_count"] = UserService.image_counts(db, [user.id]).get(user.id, 0)
        return data

    @staticmethod
    def _guard_super_admin_target(db: Session, target_id: int, actor_is_super_admin: bool) -> None:
        if actor_is_super_admin:
            return
        target_status = admin_service.compute_admin_status(db, target_id)
        if target_status.is_super_admin:
            raise AuthorizationError("Permission denied: super admin access required")

    @staticmethod
    def update_user(
        db: Session,
        user_id: int,
        changes: Dict[str, Any],
        actor_is_super_admin: bool = False,
    ) -> User:
        """Edit display name, email and bio. Admin flags are never touched here."""
        user = UserService.get_user(db, user_id)
        UserService._guard_super_admin_target(db, user_id, actor_is_super_admin)

        if changes.get("display_name") is not None:
            user.display_name = changes["display_name"].strip()

        email = changes.get("email")
        if email is not None and email != user.email:
            email = email.lower().strip()
            taken = db.query(User).filter(User.email == email, User.id != user_id).first()
            if taken:
                raise ValidationError("Email already exists")
            user.email = email

        if "bio" in changes:
            bio = (changes["bio"] or "").strip()
            user.bio = bio or None

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(
        db: Session, actor: User, user_id: int, actor_is_super_admin: bool = False,
    ) -> None:
        """Delete a user with their images, favorites, activity and admin role."""
        user = UserService.get_user(db, user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot delete your own account")
        UserService._guard_super_admin_target(db, user_id, actor_is_super_admin)

        images = db.query(Image).filter(Image.uploaded_by == user_id).all()
        image_ids = [image.id for image in images]
        for image in images:
            storage_service.delete_image(image.public_id)

        db.execute(user_favorites.delete().where(user_favorites.c.user_id == user_id))
        db.query(UserActivity).filter(UserActivity.user_id == user_id).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.recipient_id == user_id).delete(synchronize_session=False)
        if image_ids:
            db.execute(user_favorites.delete().where(user_favorites.c.image_id.in_(image_ids)))
            db.query(UserActivity).filter(
                UserActivity.image_id.in_(image_ids)
            ).delete(synchronize_session=False)
            db.query(Image).filter(Image.id.in_(image_ids)).delete(synchronize_session=False)
        db.query(AdminRole).filter(AdminRole.user_id == user_id).delete(synchronize_session=False)
        db.delete(user)
        db.commit()

        permission_cache.invalidate_user(user_id)
        logger.info("User %s deleted by %s (%d images)", user_id, actor.id, len(image_ids))

    @staticmethod
    def ban_user(
        db: Session,
        actor: User,
        user_id: int,
        reason: Optional[str] = None,
        actor_is_super_admin: bool = False,
    ) -> User:
        user = UserService.get_user(db, user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot ban your own account")
        UserService._guard_super_admin_target(db, user_id, actor_is_super_admin)

        user.is_banned = True
        user.banned_at = utcnow()
        user.banned_by = actor.id
        user.ban_reason = (reason or "").strip() or DEFAULT_BAN_REASON
        db.commit()
        db.refresh(user)

        notification_service.notify(
            db,
            recipient_id=user.id,
            type="user_banned_admin",
            actor_id=actor.id,
            metadata={"reason": user.ban_reason, "banned_by": _actor_label(actor)},
        )
        return user

    @staticmethod
    def unban_user(db: Session, actor: User, user_id: int) -> User:
        user = UserService.get_user(db, user_id)
        if not user.is_banned:
            raise ValidationError("This user is not banned")

        user.is_banned = False
        user.banned_at = None
        user.banned_by = None
        user.ban_reason = None
        db.commit()
        db.refresh(user)

        notification_service.notify(
            db,
            recipient_id=user.id,
            type="user_unbanned_admin",
            actor_id=actor.id,
            metadata={"unbanned_by": _actor_label(actor)},
        )
        return user


user_service = UserService()
