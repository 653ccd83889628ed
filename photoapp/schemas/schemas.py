"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from photoapp.core.permissions import get_role_description, normalize_permissions
from photoapp.models.image import ModerationStatus


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=4)

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user: Optional[Dict[str, Any]] = None

class RefreshRequest(BaseModel):
    refresh_token: str

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=1)


# ---- User ----
class UserSummary(BaseModel):
    id: int
    username: str
    display_name: str
    email: Optional[str] = None

    class Config:
        from_attributes = True

class UserOut(BaseModel):
    id: int
    username: str
    email: str
    display_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_banned: bool = False
    banned_at: Optional[datetime] = None
    ban_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    is_admin: bool = False
    is_super_admin: bool = False
    admin_role: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None
    image_count: Optional[int] = None

class UserUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None

class BanRequest(BaseModel):
    reason: Optional[str] = None


# ---- Admin roles ----
class AdminRoleCreate(BaseModel):
    user_id: int
    role: str = "admin"
    permissions: Optional[Dict[str, bool]] = None
    expires_at: Optional[datetime] = None
    active: Optional[bool] = None
    allowed_ips: Optional[List[str]] = None
    reason: Optional[str] = None

class AdminRoleUpdate(BaseModel):
    role: Optional[str] = None
    permissions: Optional[Dict[str, bool]] = None
    expires_at: Optional[datetime] = None
    active: Optional[bool] = None
    allowed_ips: Optional[List[str]] = None
    reason: Optional[str] = None

class AdminRoleDelete(BaseModel):
    reason: Optional[str] = None

class AdminRoleOut(BaseModel):
    id: int
    user_id: int
    role: str
    permissions: Dict[str, bool]
    granted_by: Optional[int] = None
    expires_at: Optional[datetime] = None
    active: bool
    allowed_ips: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    granter: Optional[UserSummary] = None
    is_system: bool = False
    description: Optional[str] = None

    @classmethod
    def from_role(cls, role) -> "AdminRoleOut":
        out = cls.model_validate(role, from_attributes=True)
        out.is_system = bool(role.is_system)
        out.permissions = normalize_permissions(role.permissions)
        out.description = get_role_description(role.role)
        return out


# ---- Category ----
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


# ---- Image ----
class ImageOut(BaseModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: str
    location: Optional[str] = None
    camera_model: Optional[str] = None
    views: int = 0
    downloads: int = 0
    moderation_status: ModerationStatus
    is_moderated: bool = False
    moderated_at: Optional[datetime] = None
    moderation_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    category: Optional[CategoryOut] = None
    uploader: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ImageUpdateRequest(BaseModel):
    title: Optional[str] = None
    location: Optional[str] = None
    camera_model: Optional[str] = None
    category_id: Optional[int] = None

class ModerateRequest(BaseModel):
    status: str
    notes: Optional[str] = None

class RejectRequest(BaseModel):
    reason: Optional[str] = None


# ---- Favorites ----
class FavoriteCheckRequest(BaseModel):
    image_ids: List[int] = Field(..., max_length=100)


# ---- Settings / announcements ----
class SettingsUpdateRequest(BaseModel):
    settings: Dict[str, Any]

class AnnouncementRequest(BaseModel):
    type: str
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    recipient_ids: Optional[List[int]] = None


# ---- Logs / notifications ----
class SystemLogOut(BaseModel):
    id: int
    created_at: Optional[datetime] = None
    level: str
    message: str
    user_id: Optional[int] = None
    actor: Optional[UserSummary] = None
    action: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")

    class Config:
        from_attributes = True

class NotificationOut(BaseModel):
    id: int
    type: str
    actor_id: Optional[int] = None
    image_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit if limit else 0,
    }
