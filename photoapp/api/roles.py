"""Admin role management API.

Reads need ``viewAdmins``; every mutation is reserved for super admins.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from photoapp.core.exceptions import AuthorizationError
from photoapp.core.permissions import Permission
from photoapp.core.security import AdminPrincipal, RequirePermission, require_super_admin
from photoapp.db.session import get_db
from photoapp.schemas.schemas import (
    AdminRoleCreate, AdminRoleDelete, AdminRoleOut, AdminRoleUpdate, MessageResponse,
)
from photoapp.services.role_service import role_service

router = APIRouter(prefix="/admin/roles", tags=["admin-roles"])


@router.get("")
async def list_roles(
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_ADMINS)),
):
    return {"admin_roles": [AdminRoleOut.from_role(r) for r in role_service.list_roles(db)]}


@router.get("/{user_id}")
async def get_role(
    user_id: int,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(RequirePermission(Permission.VIEW_ADMINS)),
):
    """A user's role. Non-super admins may only look at their own."""
    if user_id != admin.user.id and not admin.is_super_admin:
        raise AuthorizationError("Permission denied: super admin access required")
    return {"admin_role": AdminRoleOut.from_role(role_service.get_role(db, user_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_role(
    body: AdminRoleCreate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_super_admin),
):
    role = role_service.create_role(
        db,
        actor=admin.user,
        user_id=body.user_id,
        role=body.role,
        permissions=body.permissions,
        expires_at=body.expires_at,
        active=body.active,
        allowed_ips=body.allowed_ips,
        reason=body.reason,
        ip_address=admin.client_ip,
    )
    return {"message": "Admin role created", "admin_role": AdminRoleOut.from_role(role)}


@router.put("/{user_id}")
async def update_role(
    user_id: int,
    body: AdminRoleUpdate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_super_admin),
):
    role = role_service.update_role(
        db,
        actor=admin.user,
        user_id=user_id,
        changes=body.model_dump(exclude_unset=True),
        ip_address=admin.client_ip,
    )
    return {"message": "Admin role updated", "admin_role": AdminRoleOut.from_role(role)}


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_role(
    user_id: int,
    body: Optional[AdminRoleDelete] = None,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_super_admin),
):
    role_service.delete_role(
        db,
        actor=admin.user,
        user_id=user_id,
        reason=body.reason if body else None,
        ip_address=admin.client_ip,
    )
    return MessageResponse(message="Admin role removed")
