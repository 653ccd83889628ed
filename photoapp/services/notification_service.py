"""Notification service: best-effort user notifications."""

import logging
from typing import Optional, Any, Dict, List

from sqlalchemy.orm import Session

from photoapp.models.notification import Notification

logger = logging.getLogger("photoapp.notifications")

ANNOUNCEMENT_TYPES = (
    "system_announcement",
    "feature_update",
    "maintenance_scheduled",
    "terms_updated",
)


class NotificationService:

    @staticmethod
    def notify(
        db: Session,
        recipient_id: int,
        type: str,
        actor_id: Optional[int] = None,
        image_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Create a notification without ever failing the caller.

        Errors are logged and swallowed; the primary operation has already
        been committed by the time this runs.
        """
        try:
            notification = Notification(
                recipient_id=recipient_id,
                type=type,
                actor_id=actor_id,
                image_id=image_id,
                metadata_json=metadata or {},
            )
            db.add(notification)
            db.commit()
            return notification
        except Exception:
            db.rollback()
            logger.exception("Failed to create %s notification for user %s", type, recipient_id)
            return None

    @staticmethod
    def broadcast(
        db: Session,
        recipient_ids: List[int],
        type: str,
        actor_id: Optional[int],
        metadata: Dict[str, Any],
    ) -> int:
        """Create the same notification for many recipients in one commit."""
        db.add_all([
            Notification(
                recipient_id=recipient_id,
                type=type,
                actor_id=actor_id,
                metadata_json=metadata,
            )
            for recipient_id in recipient_ids
        ])
        db.commit()
        return len(recipient_ids)

    @staticmethod
    def list_for_user(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query = db.query(Notification).filter(Notification.recipient_id == user_id)
        total = query.count()
        unread = query.filter(Notification.is_read == False).count()  # noqa: E712
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"notifications": items, "total": total, "unread": unread}

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: Optional[int] = None) -> int:
        query = db.query(Notification).filter(
            Notification.recipient_id == user_id,
            Notification.is_read == False,  # noqa: E712
        )
        if notification_id is not None:
            query = query.filter(Notification.id == notification_id)
        updated = query.update({"is_read": True}, synchronize_session=False)
        db.commit()
        return updated


notification_service = NotificationService()
