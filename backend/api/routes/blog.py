"""
Blog post API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai.anthropic_adapter import AnthropicContentService
from adapters.ai.replicate_adapter import ReplicateImageService
from api.dependencies import get_content_service, get_current_user, get_image_service
from api.middleware.rate_limit import RATE_LIMITS, limiter
from api.schemas.blog import (
    GenerateBlogPostRequest,
    GenerateBlogPostResponse,
    PaginationResponse,
    PostListResponse,
    PostResponse,
    PostSummaryResponse,
    PostUpdateRequest,
    SuccessResponse,
)
from api.utils import parse_int_param
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.blog_generation import BlogGenerationWorkflow
from services.post_store import PostStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["Blog"])


@router.post(
    "/generate",
    response_model=GenerateBlogPostResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMITS["generate"])
async def generate_blog_post(
    request: Request,
    body: GenerateBlogPostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    content_service: AnthropicContentService = Depends(get_content_service),
    image_service: ReplicateImageService = Depends(get_image_service),
):
    """
    Generate a blog post from raw text.

    Charges ``ceil(len(text) / 15000)`` tokens, only once the post is stored.
    """
    user_id = current_user.id
    workflow = BlogGenerationWorkflow(db, content_service, image_service)
    result = await workflow.generate(user_id, body.original_text)

    return GenerateBlogPostResponse(
        post=PostResponse.model_validate(result.post),
        tokens_used=result.tokens_used,
        remaining_tokens=result.remaining_tokens,
    )


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's posts, newest first."""
    posts, pagination = await PostStore(db).list(
        current_user.id,
        page=parse_int_param(page),
        limit=parse_int_param(limit),
    )
    return PostListResponse(
        posts=[PostSummaryResponse.model_validate(p) for p in posts],
        pagination=PaginationResponse.model_validate(pagination),
    )


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a post by ID."""
    return await PostStore(db).get(current_user.id, post_id)


@router.put("/posts/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    body: PostUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a post's title, content or published flag."""
    return await PostStore(db).update(
        current_user.id,
        post_id,
        title=body.title,
        content=body.content,
        is_published=body.is_published,
    )


@router.delete("/posts/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a post."""
    await PostStore(db).delete(current_user.id, post_id)
    return SuccessResponse()
