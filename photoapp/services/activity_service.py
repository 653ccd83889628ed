"""View/download tracking with per-day UserActivity buckets."""

import logging
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photoapp.core.exceptions import ResourceNotFoundError, ValidationError
from photoapp.db.base import utcnow
from photoapp.models.image import Image
from photoapp.models.user_activity import UserActivity

logger = logging.getLogger("photoapp.activity")

ACTIVITY_COUNTERS = {
    "view": Image.views,
    "download": Image.downloads,
}


class ActivityService:

    @staticmethod
    def _bump_existing(db: Session, user_id: int, image_id: int, activity_type: str, day: str) -> int:
        updated = (
            db.query(UserActivity)
            .filter(
                UserActivity.user_id == user_id,
                UserActivity.image_id == image_id,
                UserActivity.activity_type == activity_type,
                UserActivity.date == day,
            )
            .update(
                {UserActivity.count: UserActivity.count + 1, UserActivity.updated_at: utcnow()},
                synchronize_session=False,
            )
        )
        db.commit()
        return updated

    @staticmethod
    def _track(db: Session, user_id: int, image_id: int, activity_type: str, day: str) -> bool:
        """Upsert today's row. Returns True when this is the first activity of the day."""
        if ActivityService._bump_existing(db, user_id, image_id, activity_type, day):
            return False

        db.add(UserActivity(
            user_id=user_id,
            image_id=image_id,
            activity_type=activity_type,
            date=day,
            is_first_time=True,
            count=1,
        ))
        try:
            db.commit()
            return True
        except IntegrityError:
            # Lost the race to a concurrent request; count on its row instead.
            db.rollback()
            ActivityService._bump_existing(db, user_id, image_id, activity_type, day)
            return False

    @staticmethod
    def record_activity(
        db: Session, user_id: Optional[int], image_id: int, activity_type: str,
    ) -> Dict[str, int]:
        """Record a view or download and return the image's counters.

        The image counter only moves on a user's first activity of the day;
        anonymous callers always count.
        """
        counter = ACTIVITY_COUNTERS.get(activity_type)
        if counter is None:
            raise ValidationError("Activity type must be 'view' or 'download'")

        if not db.query(Image.id).filter(Image.id == image_id).first():
            raise ResourceNotFoundError("Image not found")

        first_today = True
        if user_id is not None:
            day = utcnow().date().isoformat()
            first_today = ActivityService._track(db, user_id, image_id, activity_type, day)

        if first_today:
            db.query(Image).filter(Image.id == image_id).update(
                {counter: counter + 1}, synchronize_session=False,
            )
            db.commit()

        image = db.query(Image).filter(Image.id == image_id).first()
        db.refresh(image)
        return {"views": image.views, "downloads": image.downloads}


activity_service = ActivityService()
