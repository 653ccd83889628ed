"""Models package: import all models so metadata.create_all can discover them."""

from photoapp.models.user import User, user_favorites
from photoapp.models.admin_role import AdminRole
from photoapp.models.image import Image, Category, ModerationStatus
from photoapp.models.system_log import SystemLog
from photoapp.models.user_activity import UserActivity
from photoapp.models.setting import Setting
from photoapp.models.notification import Notification

__all__ = [
    "User", "user_favorites", "AdminRole",
    "Image", "Category", "ModerationStatus",
    "SystemLog", "UserActivity", "Setting", "Notification",
]
