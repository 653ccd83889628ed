"""Key-value site settings."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from photoapp.db.base import Base, utcnow


class Setting(Base):
    """Key-value settings; the ``system`` key holds the site-wide document."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON, nullable=False)
    description = Column(String(500), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
