"""
Owner-scoped persistence for blog posts and the token ledger.

Every query is filtered by the owning user's id.  A post that belongs to
someone else is reported exactly like a post that does not exist.
"""

import logging
import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InsufficientTokensError, PostNotFoundError
from infrastructure.database.models.post import BlogPost
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
SLUG_BASE_LENGTH = 50


def slugify(text: str) -> str:
    """Convert a title to a URL-safe slug base."""
    text = text.lower().strip()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    text = re.sub(r"^-+|-+$", "", text)
    return text[:SLUG_BASE_LENGTH].rstrip("-") or "post"


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = math.ceil(total / limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


def normalize_page(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    """Replace out-of-range paging input with defaults so offsets never go negative."""
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if limit is None or limit <= 0:
        limit = DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


class PostStore:
    """Blog post CRUD plus the conditional token debit, all scoped by user id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _owned(self, user_id: str, post_id: str):
        return select(BlogPost).where(
            BlogPost.id == post_id,
            BlogPost.user_id == user_id,
        )

    async def create(
        self,
        user_id: str,
        *,
        title: str,
        content: str,
        original_text: str,
        tokens_used: int,
        image_url: Optional[str] = None,
        image_prompt: Optional[str] = None,
    ) -> BlogPost:
        """Add a new post to the session. The caller owns the transaction."""
        post_id = str(uuid4())
        slug = f"{slugify(title)}-{int(time.time() * 1000)}"
        fields = dict(
            id=post_id,
            user_id=user_id,
            title=title,
            content=content,
            original_text=original_text,
            image_url=image_url,
            image_prompt=image_prompt,
            tokens_used=tokens_used,
            character_count=len(original_text),
            is_published=False,
        )

        try:
            async with self.db.begin_nested():
                post = BlogPost(slug=slug, **fields)
                self.db.add(post)
        except IntegrityError:
            # Same title within the same millisecond
            logger.info("Slug %s already taken, adding id suffix", slug)
            post = BlogPost(slug=f"{slug}-{post_id[:8]}", **fields)
            self.db.add(post)
            await self.db.flush()
        return post

    async def get(self, user_id: str, post_id: str) -> BlogPost:
        result = await self.db.execute(self._owned(user_id, post_id))
        post = result.scalar_one_or_none()
        if post is None:
            raise PostNotFoundError()
        return post

    async def list(
        self,
        user_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> tuple[list[BlogPost], Pagination]:
        """Return one page of the user's posts, newest first."""
        page, limit = normalize_page(page, limit)

        total = (
            await self.db.execute(
                select(func.count()).select_from(BlogPost).where(BlogPost.user_id == user_id)
            )
        ).scalar() or 0

        result = await self.db.execute(
            select(BlogPost)
            .where(BlogPost.user_id == user_id)
            .order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), Pagination.build(page, limit, total)

    async def update(
        self,
        user_id: str,
        post_id: str,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        is_published: Optional[bool] = None,
    ) -> BlogPost:
        """Apply the provided fields and commit.

        ``published_at`` is stamped the first time a post is published and is
        never reset afterwards.
        """
        post = await self.get(user_id, post_id)

        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        if is_published is not None:
            if is_published and post.published_at is None:
                post.published_at = datetime.now(timezone.utc)
            post.is_published = is_published

        await self.db.commit()
        await self.db.refresh(post)
        return post

    async def delete(self, user_id: str, post_id: str) -> None:
        post = await self.get(user_id, post_id)
        await self.db.delete(post)
        await self.db.commit()
        logger.info("Deleted blog post %s", post_id, extra={"user_id": user_id, "post_id": post_id})

    async def debit_tokens(self, user_id: str, amount: int) -> int:
        """Atomically take ``amount`` tokens from the user.

        The decrement only applies when the balance covers it, so concurrent
        requests cannot overdraw.  Runs inside the caller's transaction.

        Returns:
            The remaining balance

        Raises:
            InsufficientTokensError: the balance is smaller than ``amount``
        """
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.tokens >= amount)
            .values(tokens=User.tokens - amount)
            .execution_options(synchronize_session=False)
        )
        balance = (
            await self.db.execute(select(User.tokens).where(User.id == user_id))
        ).scalar_one_or_none() or 0

        if result.rowcount != 1:
            raise InsufficientTokensError(required=amount, available=balance)
        return balance
