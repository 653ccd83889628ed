"""Category API: public list plus admin CRUD."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from photoapp.core.permissions import Permission
from photoapp.core.security import AdminPrincipal, RequirePermission
from photoapp.db.session import get_db
from photoapp.schemas.schemas import CategoryCreate, CategoryOut, CategoryUpdate, MessageResponse
from photoapp.services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(db: Session = Depends(get_db)):
    """Active categories, alphabetical."""
    return {"categories": [CategoryOut.model_validate(c) for c in category_service.list_active(db)]}


@router.get("/admin")
async def list_categories_admin(
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_CATEGORIES)),
):
    """All categories with image counts."""
    return {"categories": category_service.list_all_with_counts(db)}


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.CREATE_CATEGORIES)),
):
    return CategoryOut.model_validate(category_service.create(db, body.name, body.description))


@router.put("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.EDIT_CATEGORIES)),
):
    category = category_service.update(db, category_id, body.model_dump(exclude_unset=True))
    return CategoryOut.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.DELETE_CATEGORIES)),
):
    category_service.delete(db, category_id)
    return MessageResponse(message="Category deleted")
