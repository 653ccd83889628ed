"""PhotoApp CLI tool (photoctl)."""

import typer

app = typer.Typer(name="photoctl", help="PhotoApp CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init():
    """Create all tables that don't exist yet."""
    import photoapp.models  # noqa: F401  (registers every table on Base.metadata)
    from photoapp.db.base import Base
    from photoapp.db.session import engine

    Base.metadata.create_all(bind=engine)
    typer.echo(f"Tables ready on {engine.url.render_as_string(hide_password=True)}")


@db_app.command("seed")
def db_seed():
    """Seed site settings, default categories and the super admin."""
    from photoapp.db.session import SessionLocal
    from photoapp.db.seeds.seed_categories import seed_categories
    from photoapp.db.seeds.seed_settings import seed_settings
    from photoapp.db.seeds.seed_super_admin import seed_super_admin

    db = SessionLocal()
    try:
        seed_settings(db)
        seed_categories(db)
        seed_super_admin(db)
    finally:
        db.close()
    typer.echo("All seeds applied")


@app.command("make-admin")
def make_admin(
    email: str = typer.Argument(..., help="Email of an existing user"),
    role: str = typer.Option("admin", help="moderator, admin or super_admin"),
):
    """Grant a role with every permission that role may hold.

    Roles granted here have no granting user, so they are system roles and
    cannot be edited or removed through the API.
    """
    from photoapp.core.exceptions import PhotoAppError
    from photoapp.core.permissions import ADMIN_MANAGEMENT_PERMISSIONS, SUPER_ADMIN, get_allowed_permissions
    from photoapp.db.session import SessionLocal
    from photoapp.models.user import User
    from photoapp.services.role_service import role_service

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user:
            typer.echo(f"User '{email}' not found", err=True)
            raise typer.Exit(code=1)

        permissions = {
            p: True for p in get_allowed_permissions(role)
            if role == SUPER_ADMIN or p not in ADMIN_MANAGEMENT_PERMISSIONS
        }
        try:
            granted = role_service.create_role(
                db, actor=None, user_id=user.id, role=role,
                permissions=permissions, reason="granted via photoctl",
            )
        except PhotoAppError as e:
            typer.echo(f"Could not grant role: {e.message}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"{user.username} is now {granted.role} ({sum(granted.permissions.values())} permissions)")
    finally:
        db.close()


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("photoapp.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
