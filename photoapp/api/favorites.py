"""Favorites API router."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from photoapp.core.security import get_current_user
from photoapp.db.session import get_db
from photoapp.models.user import User
from photoapp.schemas.schemas import FavoriteCheckRequest, ImageOut, pagination
from photoapp.services.favorite_service import favorite_service

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("")
async def list_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = favorite_service.list_for_user(db, user.id, page, limit)
    return {
        "images": [ImageOut.model_validate(img) for img in result["images"]],
        "pagination": pagination(page, limit, result["total"]),
    }


@router.post("/check")
async def check_favorites(
    body: FavoriteCheckRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Map of image id -> favorited, for a batch of ids."""
    return {"favorites": favorite_service.check(db, user.id, body.image_ids)}


@router.post("/{image_id}")
async def toggle_favorite(
    image_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    favorited = favorite_service.toggle(db, user, image_id)
    return {
        "is_favorited": favorited,
        "message": "Image added to favorites" if favorited else "Image removed from favorites",
    }
