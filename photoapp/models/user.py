"""User model and the favorites association table."""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Table, Text,
)
from sqlalchemy.orm import relationship
from photoapp.db.base import Base, utcnow


user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("image_id", Integer, ForeignKey("images.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=utcnow, nullable=False),
)


class User(Base):
    """Site member.

    Admin status is not stored here: it is derived from the user's
    AdminRole (see ``admin_service.compute_admin_status``).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=True)  # OAuth users have none
    display_name = Column(String(255), nullable=False)
    avatar_url = Column(String(500), nullable=True)
    bio = Column(String(500), nullable=True)

    # Ban state
    is_banned = Column(Boolean, default=False, nullable=False, index=True)
    banned_at = Column(DateTime, nullable=True)
    banned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    ban_reason = Column(Text, nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    favorites = relationship("Image", secondary=user_favorites, lazy="select")
