"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from photoapp.core.config import settings
from photoapp.core.middleware import setup_middleware
from photoapp.core.exceptions import PermissionValidationError, PhotoAppError
from photoapp.db.session import get_db
from photoapp.services.cache_service import cache_service
from photoapp.services.settings_service import settings_service
from photoapp.services.storage_service import storage_service

from photoapp.api.auth import router as auth_router
from photoapp.api.images import router as images_router
from photoapp.api.favorites import router as favorites_router
from photoapp.api.categories import router as categories_router
from photoapp.api.notifications import router as notifications_router
from photoapp.api.admin import router as admin_router
from photoapp.api.roles import router as roles_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("photoapp")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)
    try:
        storage_service.ensure_bucket()
        logger.info("MinIO bucket ready")
    except Exception as e:
        logger.warning("MinIO not available: %s", e)

    if cache_service.health_check():
        logger.info("Redis connected")
    else:
        logger.warning("Redis not available; caching disabled")

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Photo sharing backend with role-based admin console",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


@app.exception_handler(PhotoAppError)
async def photoapp_exception_handler(request: Request, exc: PhotoAppError):
    content = {"detail": exc.message}
    if isinstance(exc, PermissionValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(images_router, prefix="/api")
app.include_router(favorites_router, prefix="/api")
app.include_router(categories_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health(db: Session = Depends(get_db)):
    """System health check: DB and Redis."""
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        db_ok = False

    redis_ok = cache_service.health_check()
    return {
        "database": "ok" if db_ok else "error",
        "redis": "ok" if redis_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }


@app.get("/api/settings/public")
async def public_settings(db: Session = Depends(get_db)):
    """Site settings needed by anonymous visitors (signup form, banner)."""
    return {"settings": settings_service.get_public(db)}
