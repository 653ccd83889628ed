"""AdminRole model: the single source of truth for admin status."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from photoapp.db.base import Base, utcnow


class AdminRole(Base):
    """Admin role granted to exactly one user.

    ``is_system`` marks roles created outside the API (seeded super admin,
    CLI grants); those cannot be edited or deleted through the API.
    ``granted_by`` goes NULL when the granter is deleted and says nothing
    about mutability.
    """
    __tablename__ = "admin_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        unique=True, nullable=False, index=True,
    )
    role = Column(String(20), nullable=False, default="admin")  # super_admin, admin, moderator
    permissions = Column(JSON, nullable=False, default=dict)
    granted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_system = Column(Boolean, default=False, nullable=False)

    # Time-bound and conditional access
    expires_at = Column(DateTime, nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    allowed_ips = Column(JSON, nullable=False, default=list)  # IPs or CIDR ranges

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", foreign_keys=[user_id], lazy="joined")
    granter = relationship("User", foreign_keys=[granted_by], lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "permissions": dict(self.permissions or {}),
            "granted_by": self.granted_by,
            "is_system": self.is_system,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "active": self.active,
            "allowed_ips": list(self.allowed_ips or []),
        }
