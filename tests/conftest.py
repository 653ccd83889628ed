"""Shared fixtures: in-memory SQLite, a fake Redis, and stubbed storage."""

import fnmatch
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import photoapp.models  # noqa: F401
from photoapp.core.config import settings
from photoapp.core.security import create_access_token, hash_password
from photoapp.db.base import Base
from photoapp.db.session import get_db
from photoapp.main import app
from photoapp.models.admin_role import AdminRole
from photoapp.models.image import Category, Image, ModerationStatus
from photoapp.models.user import User
from photoapp.services.cache_service import cache_service
from photoapp.services.storage_service import storage_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeRedis:
    """Just enough of redis.Redis for CacheService. TTLs are recorded, not enforced."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def scan_iter(self, match="*", count=None):
        return iter([k for k in list(self.store) if fnmatch.fnmatchcase(k, match)])

    def ping(self):
        return True


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_service, "_client", fake)
    return fake


@pytest.fixture()
def storage(monkeypatch):
    """Record storage calls instead of talking to MinIO."""
    calls = {"put": [], "delete": []}

    def put_image(key, content, content_type):
        calls["put"].append(key)
        return storage_service.public_url(key)

    def delete_image(key):
        calls["delete"].append(key)
        return True

    monkeypatch.setattr(storage_service, "put_image", put_image)
    monkeypatch.setattr(storage_service, "delete_image", delete_image)
    return calls


@pytest.fixture()
def client(db, fake_redis, storage, monkeypatch):
    # TestClient connects as "testclient"; trusting it lets tests pick an IP via X-Forwarded-For
    monkeypatch.setattr(settings, "TRUSTED_PROXIES", ["testclient"])

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, password="secret123", **kwargs):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            hashed_password=hash_password(password),
            display_name=kwargs.pop("display_name", username.title()),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def grant_role(db):
    """Insert an AdminRole directly (bypassing validation)."""

    def _grant(user, role="admin", permissions=None, granted_by=None, **kwargs):
        admin_role = AdminRole(
            user_id=user.id,
            role=role,
            permissions=permissions or {"viewDashboard": True},
            granted_by=granted_by.id if granted_by else None,
            is_system=kwargs.pop("is_system", granted_by is None),
            **kwargs,
        )
        db.add(admin_role)
        db.commit()
        db.refresh(admin_role)
        return admin_role

    return _grant


@pytest.fixture()
def super_admin(make_user, grant_role):
    user = make_user("root")
    grant_role(user, role="super_admin", permissions={})
    return user


def auth_headers(user, ip=None):
    headers = {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}
    if ip:
        headers["X-Forwarded-For"] = ip
    return headers


@pytest.fixture()
def make_image(db):
    def _make(uploader, title="Sunset", category=None, status=ModerationStatus.approved, **kwargs):
        image = Image(
            public_id=kwargs.pop("public_id", f"images/{uploader.id}-{title.lower().replace(' ', '-')}.jpg"),
            title=title,
            image_url=f"http://media.test/{title}.jpg",
            uploaded_by=uploader.id,
            category_id=category.id if category else None,
            moderation_status=status,
            **kwargs,
        )
        db.add(image)
        db.commit()
        db.refresh(image)
        return image

    return _make


@pytest.fixture()
def category(db):
    cat = Category(name="Nature", description="Outdoors", is_active=True)
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


@pytest.fixture()
def headers_for():
    return auth_headers


@pytest.fixture()
def session_factory(db):
    """Sessionmaker bound to the test engine, for code that opens its own sessions."""
    return TestingSessionLocal


@pytest.fixture()
def foreign_keys(db):
    """Enforce foreign keys (and their ON DELETE actions) like MySQL does."""
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    yield
    db.rollback()
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")


class BrokenMinio:
    def __init__(self):
        self.removed = []

    def remove_object(self, bucket, key):
        self.removed.append(key)
        raise OSError("connection refused")


@pytest.fixture()
def failing_side_effects(monkeypatch, storage):
    """MinIO deletes and notification inserts both fail."""
    minio = BrokenMinio()
    monkeypatch.delattr(storage_service, "delete_image")
    monkeypatch.setattr(storage_service, "_client", minio)

    def broken_notification(**kwargs):
        raise SQLAlchemyError("notifications table unavailable")

    monkeypatch.setattr("photoapp.services.notification_service.Notification", broken_notification)
    return minio
