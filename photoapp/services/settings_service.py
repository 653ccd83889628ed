"""Site settings and system announcements."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from photoapp.core.exceptions import ValidationError
from photoapp.models.setting import Setting
from photoapp.models.user import User
from photoapp.services.audit_service import audit_service
from photoapp.services.notification_service import ANNOUNCEMENT_TYPES, notification_service

logger = logging.getLogger("photoapp.settings")

SYSTEM_KEY = "system"

DEFAULT_SYSTEM_SETTINGS: Dict[str, Any] = {
    "site_name": "PhotoApp",
    "site_description": "Discover beautiful photos",
    "max_upload_size": 10,
    "allowed_file_types": ["jpg", "jpeg", "png", "webp"],
    "maintenance_mode": False,
}

# Exposed to anonymous callers (the signup form needs the password policy).
DEFAULT_PUBLIC_SETTINGS: Dict[str, Any] = {
    **DEFAULT_SYSTEM_SETTINGS,
    "password_min_length": 8,
    "password_require_uppercase": True,
    "password_require_lowercase": True,
    "password_require_number": True,
    "password_require_special_char": False,
}


class SettingsService:

    @staticmethod
    def _get_row(db: Session) -> Optional[Setting]:
        return db.query(Setting).filter(Setting.key == SYSTEM_KEY).first()

    @staticmethod
    def get_system(db: Session) -> Dict[str, Any]:
        """Admin view; creates the default document on first read."""
        row = SettingsService._get_row(db)
        if row is None:
            row = Setting(
                key=SYSTEM_KEY,
                value=dict(DEFAULT_SYSTEM_SETTINGS),
                description="System-wide settings",
            )
            db.add(row)
            db.commit()
        return dict(row.value or {})

    @staticmethod
    def get_public(db: Session) -> Dict[str, Any]:
        """Public subset with defaults filled in. Never writes."""
        row = SettingsService._get_row(db)
        stored = dict(row.value or {}) if row else {}
        return {
            key: stored[key] if stored.get(key) is not None else default
            for key, default in DEFAULT_PUBLIC_SETTINGS.items()
        }

    @staticmethod
    def update_system(db: Session, actor: User, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge ``changes`` into the stored document."""
        row = SettingsService._get_row(db)
        if row is None:
            row = Setting(
                key=SYSTEM_KEY,
                value={**DEFAULT_SYSTEM_SETTINGS, **changes},
                description="System-wide settings",
                updated_by=actor.id,
            )
            db.add(row)
        else:
            # Reassign so the JSON column is flagged dirty.
            row.value = {**(row.value or {}), **changes}
            row.updated_by = actor.id
        db.commit()

        audit_service.log(
            db,
            message="System settings updated",
            user_id=actor.id,
            action="updateSettings",
            metadata={"settings": changes},
        )
        return dict(row.value)

    @staticmethod
    def announce(
        db: Session,
        actor: User,
        type: str,
        title: str,
        message: str,
        recipient_ids: Optional[List[int]] = None,
    ) -> int:
        """Notify the listed users (or everyone). Returns the recipient count."""
        if type not in ANNOUNCEMENT_TYPES:
            raise ValidationError("Invalid announcement type")

        query = db.query(User.id)
        if recipient_ids:
            query = query.filter(User.id.in_(recipient_ids))
        recipients = [row[0] for row in query.all()]

        notification_service.broadcast(
            db,
            recipients,
            type=type,
            actor_id=actor.id,
            metadata={"title": title, "message": message, "announcement_type": type},
        )
        audit_service.log(
            db,
            message=f"System announcement created: {type}",
            user_id=actor.id,
            action="createAnnouncement",
            metadata={"type": type, "title": title, "recipient_count": len(recipients)},
        )
        logger.info("Announcement %s sent to %d users", type, len(recipients))
        return len(recipients)


settings_service = SettingsService()
