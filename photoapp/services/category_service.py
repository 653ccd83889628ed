"""Category service: public listing and admin CRUD."""

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from photoapp.core.exceptions import ResourceNotFoundError, ValidationError
from photoapp.models.image import Category, Image
from photoapp.services.cache_service import cache_service

IMAGE_CACHE_PATTERN = "images:list:*"


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


class CategoryService:

    @staticmethod
    def list_active(db: Session) -> List[Category]:
        return (
            db.query(Category)
            .filter(Category.is_active == True)  # noqa: E712
            .order_by(Category.name)
            .all()
        )

    @staticmethod
    def list_all_with_counts(db: Session) -> List[Dict[str, Any]]:
        """Every category (inactive included) with its image count."""
        counts = dict(
            db.query(Image.category_id, func.count(Image.id))
            .filter(Image.category_id.isnot(None))
            .group_by(Image.category_id)
            .all()
        )
        return [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "is_active": c.is_active,
                "created_at": c.created_at,
                "image_count": counts.get(c.id, 0),
            }
            for c in db.query(Category).order_by(Category.name).all()
        ]

    @staticmethod
    def get(db: Session, category_id: int) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise ResourceNotFoundError("Category not found")
        return category

    @staticmethod
    def create(db: Session, name: str, description: Optional[str] = None) -> Category:
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        if _name_taken(db, name):
            raise ValidationError("A category with this name already exists")

        category = Category(name=name, description=(description or "").strip(), is_active=True)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def update(db: Session, category_id: int, changes: Dict[str, Any]) -> Category:
        category = CategoryService.get(db, category_id)

        name = changes.get("name")
        if name is not None and name.strip() != category.name:
            name = name.strip()
            if _name_taken(db, name, exclude_id=category_id):
                raise ValidationError("A category with this name already exists")
            category.name = name

        if "description" in changes:
            category.description = (changes["description"] or "").strip()
        if changes.get("is_active") is not None:
            category.is_active = changes["is_active"]

        db.commit()
        db.refresh(category)
        cache_service.invalidate_pattern(IMAGE_CACHE_PATTERN)
        return category

    @staticmethod
    def delete(db: Session, category_id: int) -> None:
        """Delete an unused category; categories still referenced by images are kept."""
        category = CategoryService.get(db, category_id)
        in_use = db.query(Image).filter(Image.category_id == category_id).count()
        if in_use:
            raise ValidationError(
                f"Cannot delete this category: {in_use} images still use it. "
                "Reassign or delete those images first."
            )
        db.delete(category)
        db.commit()
        cache_service.invalidate_pattern(IMAGE_CACHE_PATTERN)


category_service = CategoryService()
