"""
Unit tests for BlogGenerationWorkflow.

Runs against the in-memory database with fake AI services so every
transaction boundary of the workflow is exercised.
"""

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai.anthropic_adapter import GeneratedBlogPost
from core.exceptions import (
    AIGenerationError,
    GenerationTimeoutError,
    InsufficientTokensError,
    InvalidInputError,
    PremiumRequiredError,
)
from infrastructure.database.models import BlogPost, GenerationLog, User
from infrastructure.database.models.generation import GenerationStatus
from services.blog_generation import BlogGenerationWorkflow, validate_original_text

pytestmark = pytest.mark.asyncio


async def _post_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(BlogPost))).scalar()


async def _logs(db: AsyncSession) -> list[GenerationLog]:
    result = await db.execute(
        select(GenerationLog).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _balance(db: AsyncSession, user: User) -> int:
    await db.refresh(user)
    return user.tokens


class TestValidateOriginalText:
    async def test_missing(self):
        for value in (None, "", "   ", 42):
            with pytest.raises(InvalidInputError, match="Original text is required"):
                validate_original_text(value)

    async def test_too_short_after_trimming(self):
        with pytest.raises(InvalidInputError, match="at least 100 characters"):
            validate_original_text("  " + "a" * 99 + "  ")

    async def test_returns_text_unchanged(self):
        text = " " + "a" * 100 + " "
        assert validate_original_text(text) == text


class TestGenerateSuccess:
    async def test_creates_post_and_debits_once(
        self,
        db_session: AsyncSession,
        test_user: User,
        content_service,
        image_service,
        source_text: str,
    ):
        workflow = BlogGenerationWorkflow(db_session, content_service, image_service)

        result = await workflow.generate(test_user.id, source_text)

        assert result.tokens_used == 1
        assert result.remaining_tokens == 9
        assert await _balance(db_session, test_user) == 9
        assert await _post_count(db_session) == 1

        post = result.post
        assert post.user_id == test_user.id
        assert post.title == content_service.post.title
        assert post.tokens_used == 1
        assert post.character_count == len(source_text)
        assert post.original_text == source_text
        assert post.image_url == image_service.url
        assert post.image_prompt == content_service.post.image_prompt
        assert image_service.prompts == [content_service.post.image_prompt]

        (log,) = await _logs(db_session)
        assert log.status == GenerationStatus.SUCCESS
        assert log.resource_id == post.id
        assert log.tokens_charged == 1
        assert log.ai_model == "fake-model"

    async def test_cost_scales_with_length(
        self, db_session: AsyncSession, user_factory, content_service, image_service
    ):
        user = await user_factory("long@example.com", tokens=5)
        text = "b" * 30001  # three tokens

        result = await BlogGenerationWorkflow(
            db_session, content_service, image_service
        ).generate(user.id, text)

        assert result.tokens_used == 3
        assert result.remaining_tokens == 2
        assert result.post.character_count == 30001

    async def test_no_image_prompt_skips_image(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        content_service.post = GeneratedBlogPost(title="T", content="<p>C</p>", image_prompt=None)

        result = await BlogGenerationWorkflow(
            db_session, content_service, image_service
        ).generate(test_user.id, source_text)

        assert image_service.prompts == []
        assert result.post.image_url is None

    async def test_image_failure_still_creates_post(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        image_service.url = None

        result = await BlogGenerationWorkflow(
            db_session, content_service, image_service
        ).generate(test_user.id, source_text)

        assert result.post.image_url is None
        assert result.post.image_prompt == content_service.post.image_prompt
        assert await _balance(db_session, test_user) == 9

    async def test_image_service_error_still_creates_post(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        image_service.error = RuntimeError("image backend down")

        result = await BlogGenerationWorkflow(
            db_session, content_service, image_service
        ).generate(test_user.id, source_text)

        assert result.post.image_url is None
        assert await _post_count(db_session) == 1
        assert await _balance(db_session, test_user) == 9
        (log,) = await _logs(db_session)
        assert log.status == GenerationStatus.SUCCESS


class TestGenerateRejections:
    async def test_no_entitlement(
        self, db_session: AsyncSession, free_user: User, content_service, image_service, source_text
    ):
        with pytest.raises(PremiumRequiredError):
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(free_user.id, source_text)

        assert content_service.calls == []
        assert await _logs(db_session) == []

    async def test_banned_user_denied(
        self, db_session: AsyncSession, user_factory, content_service, image_service, source_text
    ):
        banned = await user_factory("banned@example.com", role="BANNED")
        with pytest.raises(PremiumRequiredError):
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(banned.id, source_text)

    async def test_short_text(
        self, db_session: AsyncSession, test_user: User, content_service, image_service
    ):
        with pytest.raises(InvalidInputError):
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(test_user.id, "too short")
        assert content_service.calls == []

    async def test_insufficient_tokens_mutates_nothing(
        self, db_session: AsyncSession, user_factory, content_service, image_service, source_text
    ):
        broke = await user_factory("broke@example.com", tokens=0)

        with pytest.raises(InsufficientTokensError) as exc_info:
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(broke.id, source_text)

        assert exc_info.value.required == 1
        assert exc_info.value.available == 0
        assert content_service.calls == []
        assert await _balance(db_session, broke) == 0
        assert await _post_count(db_session) == 0
        assert await _logs(db_session) == []


class TestGenerateFailures:
    async def test_text_failure_charges_nothing(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        content_service.error = AIGenerationError("Failed to parse generated blog post")

        with pytest.raises(AIGenerationError):
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(test_user.id, source_text)

        assert await _balance(db_session, test_user) == 10
        assert await _post_count(db_session) == 0
        assert image_service.prompts == []
        (log,) = await _logs(db_session)
        assert log.status == GenerationStatus.FAILED
        assert log.tokens_charged == 0
        assert "parse" in log.error_message

    async def test_timeout_propagates(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        content_service.error = GenerationTimeoutError()

        with pytest.raises(GenerationTimeoutError):
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(test_user.id, source_text)

        assert await _balance(db_session, test_user) == 10

    async def test_unexpected_error_becomes_generation_error(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        content_service.error = ValueError("boom")

        with pytest.raises(AIGenerationError) as exc_info:
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(test_user.id, source_text)

        assert exc_info.value.status_code == 500
        (log,) = await _logs(db_session)
        assert log.status == GenerationStatus.FAILED

    async def test_balance_drained_during_generation(
        self, db_session: AsyncSession, test_user: User, content_service, image_service, source_text
    ):
        async def competing_request_spends_everything():
            await db_session.execute(
                update(User).where(User.id == test_user.id).values(tokens=0)
            )
            await db_session.commit()

        content_service.before_return = competing_request_spends_everything

        with pytest.raises(InsufficientTokensError) as exc_info:
            await BlogGenerationWorkflow(
                db_session, content_service, image_service
            ).generate(test_user.id, source_text)

        assert exc_info.value.required == 1
        assert exc_info.value.available == 0
        assert await _post_count(db_session) == 0
        assert await _balance(db_session, test_user) == 0
        (log,) = await _logs(db_session)
        assert log.status == GenerationStatus.FAILED
        assert log.tokens_charged == 0

    async def test_only_one_of_two_generations_fits_the_balance(
        self, db_session: AsyncSession, user_factory, content_service, image_service, source_text
    ):
        user = await user_factory("one-token@example.com", tokens=1)
        workflow = BlogGenerationWorkflow(db_session, content_service, image_service)

        async def second_generation_lands_first():
            content_service.before_return = None
            await workflow.generate(user.id, source_text)

        content_service.before_return = second_generation_lands_first

        with pytest.raises(InsufficientTokensError):
            await workflow.generate(user.id, source_text)

        assert await _post_count(db_session) == 1
        assert await _balance(db_session, user) == 0
