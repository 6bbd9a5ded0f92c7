"""
Admin API schemas for user management.
"""

from datetime import datetime
from typing import Any

from api.schemas.blog import CamelModel, PaginationResponse


class UpdateUserRoleRequest(CamelModel):
    """Role change request.

    Both fields are loosely typed; the route validates them and answers 400.
    """

    user_id: Any = None
    role: Any = None


class AdminUserInfo(CamelModel):
    id: str
    name: str | None = None
    email: str
    role: str


class UpdateUserRoleResponse(CamelModel):
    user: AdminUserInfo


class UserListItemResponse(AdminUserInfo):
    image: str | None = None
    tokens: int
    subscription_tier: str
    subscription_status: str
    created_at: datetime


class UserListStats(CamelModel):
    total_users: int


class UserListResponse(CamelModel):
    users: list[UserListItemResponse]
    pagination: PaginationResponse
    stats: UserListStats
