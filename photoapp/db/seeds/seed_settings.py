"""Seed the default site settings document."""

from sqlalchemy.orm import Session

from photoapp.services.settings_service import settings_service


def seed_settings(db: Session) -> None:
    """Create the ``system`` settings row if missing (no-op otherwise)."""
    current = settings_service.get_system(db)
    print(f"System settings ready ({len(current)} keys)")
