"""Public image API: listing, upload and view/download tracking."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from photoapp.core.security import get_current_user, get_optional_user_id
from photoapp.db.session import get_db
from photoapp.models.user import User
from photoapp.schemas.schemas import ImageOut
from photoapp.services.activity_service import activity_service
from photoapp.services.admin_service import admin_service
from photoapp.services.audit_service import get_client_ip
from photoapp.services.image_service import image_service

router = APIRouter(prefix="/images", tags=["images"])


@router.get("")
async def list_images(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Approved images, newest first (cached)."""
    return image_service.list_public(db, page, limit, category, search)


@router.post("/upload", response_model=ImageOut, status_code=status.HTTP_201_CREATED)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    location: Optional[str] = Form(None),
    camera_model: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Upload a photo. Admin uploads skip the moderation queue."""
    content = await file.read()
    uploader_status = admin_service.compute_admin_status(db, user.id, get_client_ip(request))
    image = image_service.upload(
        db,
        uploader=user,
        filename=file.filename or "",
        content=content,
        content_type=file.content_type or "",
        title=title,
        description=description,
        category_id=category_id,
        location=location,
        camera_model=camera_model,
        auto_approve=uploader_status.is_admin,
    )
    return ImageOut.model_validate(image)


@router.get("/{image_id}", response_model=ImageOut)
async def get_image(image_id: int, db: Session = Depends(get_db)):
    return ImageOut.model_validate(image_service.get(db, image_id))


@router.post("/{image_id}/view")
async def record_view(
    image_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
):
    return activity_service.record_activity(db, user_id, image_id, "view")


@router.post("/{image_id}/download")
async def record_download(
    image_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
):
    return activity_service.record_activity(db, user_id, image_id, "download")
