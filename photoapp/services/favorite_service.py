"""Favorite service: per-user favorites and admin oversight."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photoapp.core.exceptions import ResourceNotFoundError
from photoapp.models.image import Image
from photoapp.models.user import User, user_favorites
from photoapp.services.audit_service import audit_service
from photoapp.services.notification_service import notification_service

logger = logging.getLogger("photoapp.favorites")


def _favorite_exists(db: Session, user_id: int, image_id: int) -> bool:
    row = db.execute(
        user_favorites.select().where(and_(
            user_favorites.c.user_id == user_id,
            user_favorites.c.image_id == image_id,
        ))
    ).first()
    return row is not None


class FavoriteService:

    @staticmethod
    def toggle(db: Session, user: User, image_id: int) -> bool:
        """Add or remove a favorite. Returns the new favorited state."""
        image = db.query(Image).filter(Image.id == image_id).first()
        if not image:
            raise ResourceNotFoundError("Image not found")

        if _favorite_exists(db, user.id, image_id):
            db.execute(user_favorites.delete().where(and_(
                user_favorites.c.user_id == user.id,
                user_favorites.c.image_id == image_id,
            )))
            db.commit()
            logger.info("User %s removed image %s from favorites", user.id, image_id)
            return False

        try:
            db.execute(user_favorites.insert().values(user_id=user.id, image_id=image_id))
            db.commit()
        except IntegrityError:
            # Already added by a concurrent request.
            db.rollback()
            return True

        logger.info("User %s added image %s to favorites", user.id, image_id)
        if image.uploaded_by and image.uploaded_by != user.id:
            notification_service.notify(
                db,
                recipient_id=image.uploaded_by,
                type="image_favorited",
                actor_id=user.id,
                image_id=image_id,
            )
        return True

    @staticmethod
    def list_for_user(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = (
            db.query(Image)
            .join(user_favorites, user_favorites.c.image_id == Image.id)
            .filter(user_favorites.c.user_id == user_id)
        )
        total = query.count()
        images = (
            query.order_by(user_favorites.c.created_at.desc(), Image.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"images": images, "total": total}

    @staticmethod
    def check(db: Session, user_id: int, image_ids: List[int]) -> Dict[str, bool]:
        if not image_ids:
            return {}
        rows = db.execute(
            user_favorites.select().where(and_(
                user_favorites.c.user_id == user_id,
                user_favorites.c.image_id.in_(image_ids),
            ))
        ).all()
        favorited = {row.image_id for row in rows}
        return {str(image_id): image_id in favorited for image_id in image_ids}

    @staticmethod
    def list_all(
        db: Session, page: int = 1, limit: int = 20, search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Every favorite, flattened to (user, image) pairs, newest first."""
        query = (
            db.query(user_favorites.c.created_at, User, Image)
            .join(User, User.id == user_favorites.c.user_id)
            .join(Image, Image.id == user_favorites.c.image_id)
        )
        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                User.username.ilike(pattern),
                User.display_name.ilike(pattern),
                User.email.ilike(pattern),
            ))

        total = query.count()
        rows = (
            query.order_by(user_favorites.c.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        favorites = [
            {
                "id": f"{user.id}_{image.id}",
                "user": {
                    "id": user.id,
                    "username": user.username,
                    "display_name": user.display_name,
                    "email": user.email,
                },
                "image": {
                    "id": image.id,
                    "title": image.title,
                    "image_url": image.image_url,
                    "uploaded_by": image.uploaded_by,
                },
                "created_at": created_at,
            }
            for created_at, user, image in rows
        ]
        return {"favorites": favorites, "total": total}

    @staticmethod
    def admin_remove(db: Session, actor: User, user_id: int, image_id: int) -> None:
        if not db.query(User.id).filter(User.id == user_id).first():
            raise ResourceNotFoundError("User not found")

        db.execute(user_favorites.delete().where(and_(
            user_favorites.c.user_id == user_id,
            user_favorites.c.image_id == image_id,
        )))
        db.commit()
        audit_service.log(
            db,
            message=f"Admin removed favorite: image {image_id} from user {user_id}",
            user_id=actor.id,
            action="deleteFavorite",
            metadata={"target_user_id": user_id, "image_id": image_id},
        )


favorite_service = FavoriteService()
