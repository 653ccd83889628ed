"""Admin API router: dashboard, users, images, moderation, logs, settings."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from photoapp.core.permissions import Permission
from photoapp.core.security import AdminPrincipal, RequirePermission, require_super_admin
from photoapp.db.base import utcnow
from photoapp.db.session import get_db
from photoapp.schemas.schemas import (
    AnnouncementRequest, BanRequest, ImageOut, ImageUpdateRequest, MessageResponse,
    ModerateRequest, RejectRequest, SettingsUpdateRequest, SystemLogOut,
    UserOut, UserUpdateRequest, pagination,
)
from photoapp.services.analytics_service import analytics_service
from photoapp.services.audit_service import audit_service
from photoapp.services.favorite_service import favorite_service
from photoapp.services.image_service import image_service
from photoapp.services.permission_cache import permission_cache
from photoapp.services.settings_service import settings_service
from photoapp.services.user_service import user_service

router = APIRouter(prefix="/admin", tags=["admin"])


# ---- Dashboard & analytics ----

@router.get("/dashboard")
async def dashboard_stats(
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_DASHBOARD)),
):
    return analytics_service.dashboard(db)


@router.get("/analytics")
async def analytics(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_ANALYTICS)),
):
    """Current window vs. the preceding window of the same length."""
    return analytics_service.analytics(db, days)


# ---- Users ----

@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_USERS)),
):
    result = user_service.list_users(db, page, limit, search)
    return {
        "users": [UserOut(**u) for u in result["users"]],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_USERS)),
):
    return {"user": UserOut(**user_service.get_user_detail(db, user_id))}


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdateRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.EDIT_USERS)),
):
    user = user_service.update_user(
        db, user_id, body.model_dump(exclude_unset=True), admin.is_super_admin,
    )
    return {"message": "User updated", "user": UserOut(**user_service.get_user_detail(db, user.id))}


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.DELETE_USERS)),
):
    user_service.delete_user(db, admin.user, user_id, admin.is_super_admin)
    return MessageResponse(message="User deleted")


@router.post("/users/{user_id}/ban")
async def ban_user(
    user_id: int,
    body: Optional[BanRequest] = None,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.BAN_USERS)),
):
    user = user_service.ban_user(
        db, admin.user, user_id, body.reason if body else None, admin.is_super_admin,
    )
    return {
        "message": "User banned",
        "user": {
            "id": user.id,
            "username": user.username,
            "display_name": user.display_name,
            "is_banned": user.is_banned,
            "banned_at": user.banned_at,
            "ban_reason": user.ban_reason,
        },
    }


@router.post("/users/{user_id}/unban")
async def unban_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.UNBAN_USERS)),
):
    user = user_service.unban_user(db, admin.user, user_id)
    return {
        "message": "User unbanned",
        "user": {
            "id": user.id,
            "username": user.username,
            "display_name": user.display_name,
            "is_banned": user.is_banned,
        },
    }


# ---- Images & moderation ----

@router.get("/images")
async def list_images(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_IMAGES)),
):
    result = image_service.list_admin(db, page, limit, search, category, user_id)
    return {
        "images": [ImageOut.model_validate(img) for img in result["images"]],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.put("/images/{image_id}")
async def update_image(
    image_id: int,
    body: ImageUpdateRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.EDIT_IMAGES)),
):
    image = image_service.update(db, image_id, body.model_dump(exclude_unset=True))
    return {"message": "Image updated", "image": ImageOut.model_validate(image)}


@router.delete("/images/{image_id}", response_model=MessageResponse)
async def delete_image(
    image_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.DELETE_IMAGES)),
):
    image_service.delete(db, admin.user, image_id)
    return MessageResponse(message="Image deleted")


@router.post("/images/{image_id}/moderate")
async def moderate_image(
    image_id: int,
    body: ModerateRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MODERATE_IMAGES)),
):
    image = image_service.moderate(db, admin.user, image_id, body.status, body.notes)
    return {"message": "Image moderated", "image": ImageOut.model_validate(image)}


@router.get("/content/pending")
async def pending_content(
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MODERATE_CONTENT)),
):
    return {"content": [ImageOut.model_validate(img) for img in image_service.pending_content(db)]}


@router.post("/content/{image_id}/approve", response_model=MessageResponse)
async def approve_content(
    image_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MODERATE_CONTENT)),
):
    image_service.approve_content(db, admin.user, image_id)
    return MessageResponse(message="Content approved")


@router.post("/content/{image_id}/reject", response_model=MessageResponse)
async def reject_content(
    image_id: int,
    body: Optional[RejectRequest] = None,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MODERATE_CONTENT)),
):
    image_service.reject_content(db, admin.user, image_id, body.reason if body else None)
    return MessageResponse(message="Content rejected")


# ---- Favorites ----

@router.get("/favorites")
async def list_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MANAGE_FAVORITES)),
):
    result = favorite_service.list_all(db, page, limit, search)
    return {
        "favorites": result["favorites"],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.delete("/favorites/{user_id}/{image_id}", response_model=MessageResponse)
async def delete_favorite(
    user_id: int,
    image_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MANAGE_FAVORITES)),
):
    favorite_service.admin_remove(db, admin.user, user_id, image_id)
    return MessageResponse(message="Favorite removed")


# ---- Logs, settings, announcements ----

@router.get("/logs")
async def system_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    level: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_LOGS)),
):
    """Query the audit trail (e.g. ``action=permission_update``)."""
    result = audit_service.query_logs(db, level, action, search, page, limit)
    return {
        "logs": [SystemLogOut.model_validate(log) for log in result["logs"]],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.get("/settings")
async def get_settings(
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MANAGE_SETTINGS)),
):
    return {"settings": settings_service.get_system(db)}


@router.put("/settings")
async def update_settings(
    body: SettingsUpdateRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MANAGE_SETTINGS)),
):
    updated = settings_service.update_system(db, admin.user, body.settings)
    return {"message": "Settings updated", "settings": updated}


@router.post("/announcements")
async def create_announcement(
    body: AnnouncementRequest,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.MANAGE_SETTINGS)),
):
    count = settings_service.announce(
        db, admin.user, body.type, body.title, body.message, body.recipient_ids,
    )
    return {"message": f"Announcement sent to {count} users", "recipient_count": count}


# ---- Permission cache ----

@router.get("/cache/stats")
async def cache_stats(admin: AdminPrincipal = Depends(require_super_admin)):
    return {
        "message": "Permission cache statistics",
        "cache": permission_cache.stats(),
        "timestamp": utcnow().isoformat(),
    }


@router.post("/cache/clear")
async def clear_cache(admin: AdminPrincipal = Depends(require_super_admin)):
    return {"cleared": permission_cache.clear_all()}
