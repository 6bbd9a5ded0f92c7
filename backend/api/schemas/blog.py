"""
Blog API schemas for generation and post management.

Fields are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialising to camelCase and accepting either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Generation
# ============================================================================


class GenerateBlogPostRequest(CamelModel):
    """Request to turn source text into a blog post.

    ``original_text`` is validated by the workflow so a wrong type or short
    text yields 400 rather than a schema error.
    """

    original_text: Any = None


class PostSummaryResponse(CamelModel):
    """Post in list views (no bodies)."""

    id: str
    title: str
    slug: str
    image_url: str | None = None
    tokens_used: int
    character_count: int
    is_published: bool
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PostResponse(PostSummaryResponse):
    """Full post."""

    user_id: str
    content: str
    original_text: str
    image_prompt: str | None = None


class GenerateBlogPostResponse(CamelModel):
    success: bool = True
    post: PostResponse
    tokens_used: int
    remaining_tokens: int


# ============================================================================
# Post management
# ============================================================================


class PostUpdateRequest(CamelModel):
    """Partial post update. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=500)
    content: str | None = Field(None, min_length=1)
    is_published: bool | None = None


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class PostListResponse(CamelModel):
    posts: list[PostSummaryResponse]
    pagination: PaginationResponse


class SuccessResponse(CamelModel):
    success: bool = True


# ============================================================================
# Account
# ============================================================================


class AccountUserResponse(CamelModel):
    id: str
    email: str
    name: str | None = None
    image: str | None = None
    role: str
    subscription_tier: str
    subscription_status: str
    subscription_expires: datetime | None = None


class AccountResponse(CamelModel):
    user: AccountUserResponse
    has_access: bool
    tokens: int
