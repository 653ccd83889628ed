"""Image and Category models."""

import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from photoapp.db.base import Base, utcnow


class ModerationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    flagged = "flagged"


class Category(Base):
    """Image category."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Image(Base):
    """Uploaded photo with moderation state and view/download counters."""
    __tablename__ = "images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    public_id = Column(String(255), unique=True, nullable=False, index=True)  # storage object key
    title = Column(String(255), nullable=True, index=True)
    description = Column(String(600), nullable=True)
    image_url = Column(String(1000), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    location = Column(String(255), nullable=True, index=True)
    camera_model = Column(String(255), nullable=True)

    views = Column(Integer, default=0, nullable=False)
    downloads = Column(Integer, default=0, nullable=False)

    moderation_status = Column(
        Enum(ModerationStatus), default=ModerationStatus.pending, nullable=False, index=True,
    )
    is_moderated = Column(Boolean, default=False, nullable=False)
    moderated_at = Column(DateTime, nullable=True)
    moderated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    moderation_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", lazy="joined")
    uploader = relationship("User", foreign_keys=[uploaded_by], lazy="joined")
