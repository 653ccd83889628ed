"""Dashboard statistics and windowed analytics.

Daily series are bucketed by local calendar day using a fixed UTC offset
(``ANALYTICS_UTC_OFFSET_HOURS``). Rows are fetched with a plain date-range
query and grouped in Python, so the same code runs on MySQL and SQLite.
"""

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.db.base import utcnow
from photoapp.models.image import Category, Image, ModerationStatus
from photoapp.models.user import User
from photoapp.models.user_activity import UserActivity
from photoapp.schemas.schemas import UserSummary


def _offset() -> timedelta:
    return timedelta(hours=settings.ANALYTICS_UTC_OFFSET_HOURS)


def local_day(moment: datetime) -> date:
    """Local calendar day of a naive-UTC timestamp."""
    return (moment + _offset()).date()


def window_bounds(days: int, now: Optional[datetime] = None) -> Tuple[date, date, datetime, datetime]:
    """Return (first_day, last_day, start_utc, end_utc) for the last ``days`` local days.

    ``end_utc`` is exclusive: midnight after ``last_day`` in local time.
    """
    now = now or utcnow()
    last_day = local_day(now)
    first_day = last_day - timedelta(days=days - 1)
    start_utc = datetime.combine(first_day, datetime.min.time()) - _offset()
    end_utc = datetime.combine(last_day + timedelta(days=1), datetime.min.time()) - _offset()
    return first_day, last_day, start_utc, end_utc


def percent_change(current: int, previous: int) -> float:
    if previous == 0:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


def _series(counts: Counter, first_day: date, days: int) -> List[Dict[str, Any]]:
    return [
        {"date": (first_day + timedelta(days=i)).isoformat(),
         "count": counts.get(first_day + timedelta(days=i), 0)}
        for i in range(days)
    ]


def _bucket(timestamps: Iterable[datetime]) -> Counter:
    return Counter(local_day(ts) for ts in timestamps if ts is not None)


class AnalyticsService:

    @staticmethod
    def category_stats(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = (
            db.query(Image.category_id, Category.name, func.count(Image.id).label("count"))
            .outerjoin(Category, Category.id == Image.category_id)
            .group_by(Image.category_id, Category.name)
            .order_by(func.count(Image.id).desc())
        )
        if limit:
            query = query.limit(limit)
        return [
            {"category_id": category_id, "name": name or "Unknown", "count": count}
            for category_id, name, count in query.all()
        ]

    @staticmethod
    def dashboard(db: Session) -> Dict[str, Any]:
        recent_users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(5).all()
        recent_images = db.query(Image).order_by(Image.created_at.desc(), Image.id.desc()).limit(10).all()
        return {
            "stats": {
                "total_users": db.query(User).count(),
                "total_images": db.query(Image).count(),
                "category_stats": AnalyticsService.category_stats(db, limit=10),
            },
            "recent_users": [
                {**UserSummary.model_validate(u).model_dump(), "created_at": u.created_at}
                for u in recent_users
            ],
            "recent_images": [
                {
                    "id": img.id,
                    "title": img.title,
                    "category": img.category.name if img.category else None,
                    "uploader": UserSummary.model_validate(img.uploader).model_dump() if img.uploader else None,
                    "created_at": img.created_at,
                }
                for img in recent_images
            ],
        }

    @staticmethod
    def _daily(db: Session, column, start: datetime, end: datetime, *filters) -> Counter:
        rows = db.query(column).filter(column >= start, column < end, *filters).all()
        return _bucket(row[0] for row in rows)

    @staticmethod
    def _activity_series(db: Session, first_day: date, days: int) -> Dict[str, List[Dict[str, Any]]]:
        last_day = first_day + timedelta(days=days - 1)
        rows = (
            db.query(UserActivity.date, UserActivity.activity_type, func.sum(UserActivity.count))
            .filter(UserActivity.date >= first_day.isoformat(), UserActivity.date <= last_day.isoformat())
            .group_by(UserActivity.date, UserActivity.activity_type)
            .all()
        )
        totals = {"view": Counter(), "download": Counter()}
        for day, activity_type, total in rows:
            if activity_type in totals:
                totals[activity_type][date.fromisoformat(day)] += int(total or 0)
        return {
            "views": _series(totals["view"], first_day, days),
            "downloads": _series(totals["download"], first_day, days),
        }

    @staticmethod
    def analytics(db: Session, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Totals plus daily series for the current window and the one before it."""
        first_day, last_day, start, end = window_bounds(days, now)
        prev_first_day = first_day - timedelta(days=days)
        prev_start = start - timedelta(days=days)

        daily = AnalyticsService._daily
        pending = Image.moderation_status == ModerationStatus.pending
        approved = Image.moderation_status == ModerationStatus.approved

        current = {
            "uploads": daily(db, Image.created_at, start, end),
            "users": daily(db, User.created_at, start, end),
            "pending": daily(db, Image.created_at, start, end, pending),
            "approved": daily(db, Image.created_at, start, end, approved),
        }
        previous = {
            "uploads": daily(db, Image.created_at, prev_start, start),
            "users": daily(db, User.created_at, prev_start, start),
            "pending": daily(db, Image.created_at, prev_start, start, pending),
            "approved": daily(db, Image.created_at, prev_start, start, approved),
        }

        def status_count(status: ModerationStatus) -> int:
            return db.query(Image).filter(Image.moderation_status == status).count()

        top_uploaders = (
            db.query(User.id, User.username, User.display_name, func.count(Image.id).label("uploads"))
            .join(Image, Image.uploaded_by == User.id)
            .filter(Image.created_at >= start, Image.created_at < end)
            .group_by(User.id, User.username, User.display_name)
            .order_by(func.count(Image.id).desc())
            .limit(10)
            .all()
        )

        activity = AnalyticsService._activity_series(db, first_day, days)
        new_users = sum(current["users"].values())
        new_images = sum(current["uploads"].values())

        return {
            "period": {
                "days": days,
                "start_date": first_day.isoformat(),
                "end_date": last_day.isoformat(),
                "utc_offset_hours": settings.ANALYTICS_UTC_OFFSET_HOURS,
            },
            "users": {
                "total": db.query(User).count(),
                "new": new_users,
                "banned": db.query(User).filter(User.is_banned == True).count(),  # noqa: E712
            },
            "images": {
                "total": db.query(Image).count(),
                "new": new_images,
                "moderated": db.query(Image).filter(Image.is_moderated == True).count(),  # noqa: E712
                "pending_moderation": status_count(ModerationStatus.pending),
                "approved": status_count(ModerationStatus.approved),
                "rejected": status_count(ModerationStatus.rejected),
                "flagged": status_count(ModerationStatus.flagged),
            },
            "categories": AnalyticsService.category_stats(db),
            "daily_uploads": _series(current["uploads"], first_day, days),
            "daily_uploads_comparison": _series(previous["uploads"], prev_first_day, days),
            "daily_users": _series(current["users"], first_day, days),
            "daily_users_comparison": _series(previous["users"], prev_first_day, days),
            "daily_pending": _series(current["pending"], first_day, days),
            "daily_pending_comparison": _series(previous["pending"], prev_first_day, days),
            "daily_approved": _series(current["approved"], first_day, days),
            "daily_approved_comparison": _series(previous["approved"], prev_first_day, days),
            "changes": {
                "uploads": percent_change(new_images, sum(previous["uploads"].values())),
                "users": percent_change(new_users, sum(previous["users"].values())),
                "pending": percent_change(
                    sum(current["pending"].values()), sum(previous["pending"].values()),
                ),
                "approved": percent_change(
                    sum(current["approved"].values()), sum(previous["approved"].values()),
                ),
            },
            "top_uploaders": [
                {"user_id": uid, "username": username, "display_name": display_name, "upload_count": uploads}
                for uid, username, display_name, uploads in top_uploaders
            ],
            "views_over_time": activity["views"],
            "downloads_over_time": activity["downloads"],
            "total_views": sum(point["count"] for point in activity["views"]),
            "total_downloads": sum(point["count"] for point in activity["downloads"]),
        }


analytics_service = AnalyticsService()
