"""
API request and response schemas.
"""

from .admin import (
    UpdateUserRoleRequest,
    UpdateUserRoleResponse,
    UserListResponse,
)
from .blog import (
    AccountResponse,
    GenerateBlogPostRequest,
    GenerateBlogPostResponse,
    PostListResponse,
    PostResponse,
    PostUpdateRequest,
    SuccessResponse,
)

__all__ = [
    "AccountResponse",
    "GenerateBlogPostRequest",
    "GenerateBlogPostResponse",
    "PostListResponse",
    "PostResponse",
    "PostUpdateRequest",
    "SuccessResponse",
    "UpdateUserRoleRequest",
    "UpdateUserRoleResponse",
    "UserListResponse",
]
