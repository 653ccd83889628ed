"""Notifications API router: the caller's own notifications."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from photoapp.core.security import get_current_user
from photoapp.db.session import get_db
from photoapp.models.user import User
from photoapp.schemas.schemas import NotificationOut, pagination
from photoapp.services.notification_service import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = notification_service.list_for_user(db, user.id, page, limit)
    return {
        "notifications": [NotificationOut.model_validate(n) for n in result["notifications"]],
        "unread": result["unread"],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.post("/read")
async def mark_read(
    notification_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mark one notification (or all of them) as read."""
    updated = notification_service.mark_read(db, user.id, notification_id)
    return {"updated": updated}
