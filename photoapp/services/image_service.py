"""Image service: uploads, public listing, admin edits and moderation."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.core.exceptions import ResourceNotFoundError, ValidationError
from photoapp.db.base import utcnow
from photoapp.models.image import Category, Image, ModerationStatus
from photoapp.models.user import User, user_favorites
from photoapp.models.user_activity import UserActivity
from photoapp.schemas.schemas import ImageOut, pagination
from photoapp.services.audit_service import audit_service
from photoapp.services.cache_service import cache_service
from photoapp.services.category_service import IMAGE_CACHE_PATTERN
from photoapp.services.notification_service import notification_service
from photoapp.services.storage_service import storage_service

logger = logging.getLogger("photoapp.images")

MODERATION_DECISIONS = (
    ModerationStatus.approved.value,
    ModerationStatus.rejected.value,
    ModerationStatus.flagged.value,
)
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _empty_page(page: int, limit: int) -> Dict[str, Any]:
    return {"images": [], "pagination": pagination(page, limit, 0)}


class ImageService:
    """Image lifecycle. Every mutation clears the cached public listings."""

    @staticmethod
    def get(db: Session, image_id: int) -> Image:
        image = db.query(Image).filter(Image.id == image_id).first()
        if not image:
            raise ResourceNotFoundError("Image not found")
        return image

    @staticmethod
    def invalidate_listing_cache() -> int:
        return cache_service.invalidate_pattern(IMAGE_CACHE_PATTERN)

    # ---- Public ----

    @staticmethod
    def upload(
        db: Session,
        uploader: User,
        filename: str,
        content: bytes,
        content_type: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        location: Optional[str] = None,
        camera_model: Optional[str] = None,
        auto_approve: bool = False,
    ) -> Image:
        """Store the binary in MinIO and create the Image row.

        Uploads by admins are approved immediately; everyone else's land in
        the moderation queue as ``pending``.
        """
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError("Unsupported file type")
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
            raise ValidationError(f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB} MB limit")
        if category_id is not None:
            ImageService._check_category(db, category_id)

        key = storage_service.build_key(filename or f"upload.{ALLOWED_CONTENT_TYPES[content_type]}")
        url = storage_service.put_image(key, content, content_type)

        status = ModerationStatus.approved if auto_approve else ModerationStatus.pending
        image = Image(
            public_id=key,
            title=_clean(title) or (filename or "Untitled").rsplit(".", 1)[0],
            description=_clean(description),
            image_url=url,
            category_id=category_id,
            uploaded_by=uploader.id,
            location=_clean(location),
            camera_model=_clean(camera_model),
            moderation_status=status,
            is_moderated=auto_approve,
            moderated_at=utcnow() if auto_approve else None,
            moderated_by=uploader.id if auto_approve else None,
        )
        db.add(image)
        db.commit()
        db.refresh(image)

        ImageService.invalidate_listing_cache()
        logger.info("Image %s uploaded by user %s (%s)", image.id, uploader.id, status.value)
        return image

    @staticmethod
    def list_public(
        db: Session,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Approved images, newest first. Responses are cached in Redis."""
        category = (category or "").strip()
        search = (search or "").strip()
        cache_key = f"images:list:{page}:{limit}:{category.lower()}:{search.lower()}"
        cached = cache_service.get_json(cache_key)
        if cached is not None:
            return cached

        query = db.query(Image).filter(Image.moderation_status == ModerationStatus.approved)
        if category:
            found = (
                db.query(Category)
                .filter(func.lower(Category.name) == category.lower(), Category.is_active == True)  # noqa: E712
                .first()
            )
            if not found:
                return _empty_page(page, limit)
            query = query.filter(Image.category_id == found.id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Image.title.ilike(pattern), Image.location.ilike(pattern)))

        total = query.count()
        images = (
            query.order_by(Image.created_at.desc(), Image.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        result = {
            "images": [ImageOut.model_validate(img).model_dump(mode="json") for img in images],
            "pagination": pagination(page, limit, total),
        }
        cache_service.set_json(cache_key, result, settings.IMAGE_LIST_CACHE_TTL_SECONDS)
        return result

    # ---- Admin ----

    @staticmethod
    def list_admin(
        db: Session,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """All images regardless of moderation state.

        An unknown (or inactive) category name yields an empty page rather
        than an unfiltered one.
        """
        query = db.query(Image)

        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Image.title.ilike(pattern), Image.location.ilike(pattern)))

        category = (category or "").strip()
        if category:
            found = (
                db.query(Category)
                .filter(func.lower(Category.name) == category.lower(), Category.is_active == True)  # noqa: E712
                .first()
            )
            if not found:
                return {"images": [], "total": 0}
            query = query.filter(Image.category_id == found.id)

        if user_id is not None:
            query = query.filter(Image.uploaded_by == user_id)

        total = query.count()
        images = (
            query.order_by(Image.created_at.desc(), Image.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"images": images, "total": total}

    @staticmethod
    def _check_category(db: Session, category_id: int) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise ValidationError("Category not found")
        if not category.is_active:
            raise ValidationError("Category is not active")
        return category

    @staticmethod
    def update(db: Session, image_id: int, changes: Dict[str, Any]) -> Image:
        image = ImageService.get(db, image_id)

        if "title" in changes:
            image.title = _clean(changes["title"]) or image.title
        if "location" in changes:
            image.location = _clean(changes["location"])
        if "camera_model" in changes:
            image.camera_model = _clean(changes["camera_model"])
        if "category_id" in changes:
            category_id = changes["category_id"]
            if category_id is not None:
                ImageService._check_category(db, category_id)
            image.category_id = category_id

        db.commit()
        db.refresh(image)
        ImageService.invalidate_listing_cache()
        return image

    @staticmethod
    def delete(db: Session, actor: User, image_id: int) -> None:
        """Remove an image everywhere; storage and notification steps are best-effort."""
        image = ImageService.get(db, image_id)
        owner_id = image.uploaded_by
        title = image.title

        storage_service.delete_image(image.public_id)

        db.execute(user_favorites.delete().where(user_favorites.c.image_id == image_id))
        db.query(UserActivity).filter(UserActivity.image_id == image_id).delete(synchronize_session=False)
        db.delete(image)
        db.commit()

        if owner_id:
            notification_service.notify(
                db,
                recipient_id=owner_id,
                type="image_removed_admin",
                actor_id=actor.id,
                metadata={"image_title": title, "reason": "Removed by admin"},
            )

        ImageService.invalidate_listing_cache()
        logger.info("Image %s deleted by admin %s", image_id, actor.id)

    @staticmethod
    def _set_moderation(image: Image, actor: User, status: str, notes: Optional[str]) -> None:
        image.moderation_status = ModerationStatus(status)
        image.is_moderated = True
        image.moderated_at = utcnow()
        image.moderated_by = actor.id
        image.moderation_notes = notes

    @staticmethod
    def moderate(
        db: Session, actor: User, image_id: int, status: str, notes: Optional[str] = None,
    ) -> Image:
        if status not in MODERATION_DECISIONS:
            raise ValidationError(
                "Invalid moderation status. Must be one of: approved, rejected, flagged"
            )
        image = ImageService.get(db, image_id)
        ImageService._set_moderation(image, actor, status, _clean(notes))
        db.commit()
        db.refresh(image)
        ImageService.invalidate_listing_cache()
        return image

    @staticmethod
    def pending_content(db: Session) -> List[Image]:
        return (
            db.query(Image)
            .filter(Image.moderation_status == ModerationStatus.pending)
            .order_by(Image.created_at.desc(), Image.id.desc())
            .all()
        )

    @staticmethod
    def approve_content(db: Session, actor: User, image_id: int) -> Image:
        image = ImageService.get(db, image_id)
        ImageService._set_moderation(image, actor, ModerationStatus.approved.value, image.moderation_notes)
        db.commit()
        audit_service.log(
            db,
            message=f"Content approved: {image_id}",
            user_id=actor.id,
            action="approveContent",
            metadata={"content_id": image_id},
        )
        ImageService.invalidate_listing_cache()
        return image

    @staticmethod
    def reject_content(
        db: Session, actor: User, image_id: int, reason: Optional[str] = None,
    ) -> Image:
        image = ImageService.get(db, image_id)
        reason = _clean(reason)
        ImageService._set_moderation(
            image, actor, ModerationStatus.rejected.value, reason or image.moderation_notes,
        )
        db.commit()
        message = f"Content rejected: {image_id}"
        if reason:
            message += f" - Reason: {reason}"
        audit_service.log(
            db,
            message=message,
            user_id=actor.id,
            action="rejectContent",
            metadata={"content_id": image_id, "reason": reason},
        )
        ImageService.invalidate_listing_cache()
        return image


image_service = ImageService()
