"""
Admin user management API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.middleware.rate_limit import _get_real_ip
from api.schemas.admin import (
    AdminUserInfo,
    UpdateUserRoleRequest,
    UpdateUserRoleResponse,
    UserListItemResponse,
    UserListResponse,
    UserListStats,
)
from api.schemas.blog import PaginationResponse
from api.utils import parse_int_param
from core.exceptions import UserNotFoundError
from infrastructure.database.connection import get_db
from infrastructure.database.models.admin import AdminAuditLog, AuditAction, AuditTargetType
from infrastructure.database.models.user import User, UserRole
from services.post_store import Pagination, normalize_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin - Users"])

_VALID_ROLES = {role.value for role in UserRole}


def create_audit_log(
    db: AsyncSession,
    admin_user: User,
    action: AuditAction,
    target_type: AuditTargetType,
    target_id: str,
    metadata: Optional[dict] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AdminAuditLog:
    """
    Add an audit log entry for an admin action to the current transaction.
    """
    details = metadata.copy() if metadata else {}
    if user_agent:
        details["user_agent"] = user_agent

    audit_log = AdminAuditLog(
        admin_user_id=admin_user.id,
        action=action.value,
        target_type=target_type.value,
        target_id=target_id,
        details=details or None,
        ip_address=ip_address,
    )
    db.add(audit_log)
    return audit_log


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> UserListResponse:
    """
    List all users, newest first.

    Admin access required.
    """
    page_num, page_size = normalize_page(parse_int_param(page), parse_int_param(limit))

    total = (await db.execute(select(func.count()).select_from(User))).scalar() or 0

    result = await db.execute(
        select(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page_num - 1) * page_size)
        .limit(page_size)
    )
    users = result.scalars().all()

    return UserListResponse(
        users=[UserListItemResponse.model_validate(user) for user in users],
        pagination=PaginationResponse.model_validate(Pagination.build(page_num, page_size, total)),
        stats=UserListStats(total_users=total),
    )


@router.post("/update-user", response_model=UpdateUserRoleResponse)
async def update_user_role(
    body: UpdateUserRoleRequest,
    http_request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
    user_agent: Optional[str] = Header(None),
) -> UpdateUserRoleResponse:
    """
    Change a user's role to USER, ADMIN or BANNED.

    Admin access required. Admins cannot change their own role.
    """
    if not isinstance(body.user_id, str) or not body.user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID is required",
        )
    if not isinstance(body.role, str) or body.role not in _VALID_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role",
        )

    user_id = body.user_id.strip()
    if user_id == admin_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot change your own role",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError()

    old_role = user.role
    if old_role != body.role:
        user.role = body.role
        create_audit_log(
            db=db,
            admin_user=admin_user,
            action=AuditAction.ROLE_CHANGED,
            target_type=AuditTargetType.USER,
            target_id=user.id,
            metadata={"old_role": old_role, "new_role": body.role},
            ip_address=_get_real_ip(http_request),
            user_agent=user_agent,
        )
        await db.commit()
        await db.refresh(user)
        logger.info(
            "Admin %s changed role of user %s: %s -> %s",
            admin_user.id, user.id, old_role, user.role,
            extra={"user_id": admin_user.id},
        )

    return UpdateUserRoleResponse(user=AdminUserInfo.model_validate(user))
