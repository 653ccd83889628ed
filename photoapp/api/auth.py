"""Auth API router: register, login, refresh, me."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from photoapp.core.security import get_current_user
from photoapp.db.session import get_db
from photoapp.models.user import User
from photoapp.schemas.schemas import (
    LoginRequest, RegisterRequest, RefreshRequest, TokenResponse, UserOut,
)
from photoapp.services.admin_service import admin_service
from photoapp.services.audit_service import get_client_ip
from photoapp.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """Register a new member account."""
    user = auth_service.register(db, body.username, body.email, body.password, body.display_name)
    return admin_service.enrich_user(db, user, get_client_ip(request))


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Authenticate and return JWT tokens."""
    return auth_service.authenticate(db, body.email, body.password, get_client_ip(request))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    return auth_service.refresh_access_token(db, body.refresh_token)


@router.get("/me", response_model=UserOut)
async def get_me(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Current user with derived admin flags and permissions."""
    return admin_service.enrich_user(db, user, get_client_ip(request))
