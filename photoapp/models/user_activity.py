"""Per-day user activity buckets for profile analytics."""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, Index,
)
from photoapp.db.base import Base, utcnow


class UserActivity(Base):
    """One row per (user, image, activity type, date); ``count`` grows in place."""
    __tablename__ = "user_activities"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "image_id", "activity_type", "date",
            name="uq_user_activity_day",
        ),
        Index("ix_user_activity_user_type_date", "user_id", "activity_type", "date"),
        Index("ix_user_activity_image_type_date", "image_id", "activity_type", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False)
    activity_type = Column(String(10), nullable=False)  # view, download
    date = Column(String(10), nullable=False)  # YYYY-MM-DD (UTC)
    is_first_time = Column(Boolean, default=True, nullable=False)
    count = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
