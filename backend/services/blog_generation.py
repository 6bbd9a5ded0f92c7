"""
Blog generation workflow.

Turns a user's source text into a persisted blog post:
entitlement check, input validation, quota check, text generation,
optional featured image, then the token debit and post insert in a
single commit.  No tokens are taken unless a post is stored.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai.anthropic_adapter import GeneratedBlogPost
from core.exceptions import (
    AIGenerationError,
    BlogForgeError,
    InsufficientTokensError,
    InvalidInputError,
    PremiumRequiredError,
)
from core.quota import MIN_SOURCE_CHARACTERS, calculate_tokens_used
from infrastructure.config.settings import settings
from infrastructure.database.models.generation import GenerationLog
from infrastructure.database.models.post import BlogPost
from services.access_gate import AccessGate
from services.generation_tracker import GenerationTracker
from services.post_store import PostStore

logger = logging.getLogger(__name__)

# Caps concurrent model calls per process
_generation_semaphore = asyncio.Semaphore(settings.max_concurrent_generations)


class ContentService(Protocol):
    model: str

    async def generate_blog_post(self, original_text: str) -> GeneratedBlogPost: ...


class ImageService(Protocol):
    async def generate_blog_image(self, prompt: str) -> Optional[str]: ...


@dataclass
class GenerationResult:
    post: BlogPost
    tokens_used: int
    remaining_tokens: int


def validate_original_text(original_text: object) -> str:
    """Return the text unchanged if it is long enough to generate from."""
    if not isinstance(original_text, str) or not original_text.strip():
        raise InvalidInputError("Original text is required")
    if len(original_text.strip()) < MIN_SOURCE_CHARACTERS:
        raise InvalidInputError(
            f"Original text must be at least {MIN_SOURCE_CHARACTERS} characters"
        )
    return original_text


class BlogGenerationWorkflow:
    """Runs one paid generation for one user."""

    def __init__(
        self,
        db: AsyncSession,
        content_service: ContentService,
        image_service: ImageService,
    ):
        self.db = db
        self.content_service = content_service
        self.image_service = image_service
        self.gate = AccessGate(db)
        self.store = PostStore(db)
        self.tracker = GenerationTracker(db)

    async def generate(self, user_id: str, original_text: object) -> GenerationResult:
        """
        Generate and store a blog post.

        Raises:
            PremiumRequiredError: the user has no paid access
            InvalidInputError: the source text is missing or too short
            InsufficientTokensError: the balance does not cover the cost,
                either up front or at debit time
            AIGenerationError: text generation failed (GenerationTimeoutError on timeout)
        """
        access = await self.gate.check_access(user_id)
        if not access.has_access:
            raise PremiumRequiredError()

        original_text = validate_original_text(original_text)

        tokens_needed = calculate_tokens_used(original_text)
        if access.tokens < tokens_needed:
            raise InsufficientTokensError(required=tokens_needed, available=access.tokens)

        gen_log = await self.tracker.log_start(
            user_id=user_id,
            input_metadata={
                "character_count": len(original_text),
                "tokens_required": tokens_needed,
            },
        )
        await self.db.commit()  # Commit the log entry

        start_time = time.monotonic()
        ai_model = getattr(self.content_service, "model", None)

        try:
            async with _generation_semaphore:
                generated = await self.content_service.generate_blog_post(original_text)
        except Exception as e:
            error = e if isinstance(e, BlogForgeError) else AIGenerationError()
            await self._record_failure(gen_log, str(e) or error.message, ai_model, start_time)
            if error is e:
                raise
            raise error from e

        image_url = None
        if generated.image_prompt:
            try:
                image_url = await self.image_service.generate_blog_image(generated.image_prompt)
            except Exception as e:
                # The post is still saved without a featured image
                logger.warning("Featured image generation failed for user %s: %s", user_id, e)
                image_url = None

        duration_ms = _elapsed_ms(start_time)
        try:
            remaining = await self.store.debit_tokens(user_id, tokens_needed)
            post = await self.store.create(
                user_id,
                title=generated.title,
                content=generated.content,
                original_text=original_text,
                tokens_used=tokens_needed,
                image_url=image_url,
                image_prompt=generated.image_prompt,
            )
            await self.tracker.log_success(
                gen_log,
                resource_id=post.id,
                tokens_charged=tokens_needed,
                ai_model=ai_model,
                duration_ms=duration_ms,
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            await self._record_failure(
                gen_log, str(e) or type(e).__name__, ai_model, start_time, reload=True
            )
            raise

        logger.info(
            "Generated blog post %s for user %s (%d tokens, %d remaining)",
            post.id, user_id, tokens_needed, remaining,
            extra={"user_id": user_id, "post_id": post.id, "tokens_used": tokens_needed},
        )
        return GenerationResult(post=post, tokens_used=tokens_needed, remaining_tokens=remaining)

    async def _record_failure(
        self,
        gen_log: GenerationLog,
        error_message: str,
        ai_model: Optional[str],
        start_time: float,
        reload: bool = False,
    ) -> None:
        """Mark the log failed and commit. Bookkeeping errors never mask the original one."""
        log_id = gen_log.id if not reload else None
        try:
            if reload:
                # Rolled back; attributes are expired
                await self.db.refresh(gen_log)
                log_id = gen_log.id
            await self.tracker.log_failure(
                gen_log,
                error_message=error_message,
                ai_model=ai_model,
                duration_ms=_elapsed_ms(start_time),
            )
            await self.db.commit()
        except Exception as log_error:
            logger.error("Failed to record generation failure %s: %s", log_id, log_error)
            await self.db.rollback()
            return
        logger.warning("Generation %s failed: %s", log_id, error_message)


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
