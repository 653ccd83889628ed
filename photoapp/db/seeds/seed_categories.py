"""Seed a starter set of image categories."""

from sqlalchemy.orm import Session

from photoapp.models.image import Category

DEFAULT_CATEGORIES = [
    ("Nature", "Landscapes, plants and wildlife"),
    ("Architecture", "Buildings, interiors and cityscapes"),
    ("People", "Portraits and street photography"),
    ("Travel", "Places around the world"),
    ("Food", "Dishes, drinks and markets"),
]


def seed_categories(db: Session) -> None:
    """Insert default categories that don't already exist."""
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if db.query(Category).filter(Category.name == name).first():
            continue
        db.add(Category(name=name, description=description, is_active=True))
        created += 1
    db.commit()
    print(f"Seeded {created} categories")
