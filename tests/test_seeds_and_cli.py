import pytest
from typer.testing import CliRunner

from photoapp.cli import app as cli_app
from photoapp.core.config import settings
from photoapp.db.seeds.seed_categories import seed_categories
from photoapp.db.seeds.seed_super_admin import seed_super_admin
from photoapp.models.admin_role import AdminRole
from photoapp.models.image import Category

runner = CliRunner()


def test_seed_super_admin_is_idempotent(db, fake_redis):
    user = seed_super_admin(db)
    again = seed_super_admin(db)
    assert user.id == again.id
    assert user.email == settings.SUPER_ADMIN_EMAIL

    role = db.query(AdminRole).one()
    assert role.role == "super_admin"
    assert role.granted_by is None
    assert role.is_system is True


def test_seeded_super_admin_role_is_locked(client, db, headers_for):
    root = seed_super_admin(db)
    resp = client.delete(f"/api/admin/roles/{root.id}", headers=headers_for(root))
    assert resp.status_code == 403


def test_seed_categories_skips_existing(db, category):
    seed_categories(db)
    seed_categories(db)
    assert db.query(Category).count() == 5


@pytest.fixture()
def cli_session(db, session_factory, monkeypatch):
    monkeypatch.setattr("photoapp.db.session.SessionLocal", session_factory)
    return db


def test_make_admin_grants_system_role(cli_session, fake_redis, make_user):
    user = make_user("ivy")
    result = runner.invoke(cli_app, ["make-admin", "ivy@example.com", "--role", "moderator"])
    assert result.exit_code == 0, result.output
    assert "ivy is now moderator" in result.output

    cli_session.expire_all()
    role = cli_session.query(AdminRole).filter(AdminRole.user_id == user.id).one()
    assert role.granted_by is None
    assert role.is_system is True
    assert role.permissions["moderateContent"] is True
    assert "deleteUsers" not in role.permissions or role.permissions["deleteUsers"] is False


def test_make_admin_unknown_user(cli_session, fake_redis):
    result = runner.invoke(cli_app, ["make-admin", "ghost@example.com"])
    assert result.exit_code == 1
