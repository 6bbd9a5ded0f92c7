"""
Unit tests for GenerationTracker service.

The database session is mocked so the tests run without any real
infrastructure.  Each test is fully independent.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from infrastructure.database.models.generation import GenerationLog, GenerationStatus
from services.generation_tracker import GenerationTracker

pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_db_session() -> AsyncMock:
    """Return a minimal mock that satisfies AsyncSession usage."""
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    return session


def _make_log(user_id: str) -> GenerationLog:
    return GenerationLog(
        id=str(uuid4()),
        user_id=user_id,
        resource_type="blog_post",
        status=GenerationStatus.STARTED,
        tokens_charged=0,
    )


# ---------------------------------------------------------------------------
# Tests: log_start / log_success / log_failure lifecycle
# ---------------------------------------------------------------------------


class TestGenerationLog:
    """Tests for the generation logging lifecycle methods."""

    async def test_log_start_creates_record(self):
        db = _make_db_session()
        tracker = GenerationTracker(db)
        user_id = str(uuid4())

        log = await tracker.log_start(
            user_id=user_id,
            input_metadata={"character_count": 420, "tokens_required": 1},
        )

        db.add.assert_called_once_with(log)
        db.flush.assert_awaited_once()
        assert log.user_id == user_id
        assert log.status == GenerationStatus.STARTED
        assert log.resource_type == "blog_post"
        assert log.resource_id is None
        assert log.tokens_charged == 0
        assert log.input_metadata["tokens_required"] == 1

    async def test_log_success_records_charge(self):
        db = _make_db_session()
        tracker = GenerationTracker(db)
        log = _make_log(str(uuid4()))
        post_id = str(uuid4())

        await tracker.log_success(
            log, resource_id=post_id, tokens_charged=2, ai_model="claude", duration_ms=1234
        )

        assert log.status == GenerationStatus.SUCCESS
        assert log.resource_id == post_id
        assert log.tokens_charged == 2
        assert log.ai_model == "claude"
        assert log.duration_ms == 1234
        db.flush.assert_awaited_once()

    async def test_log_failure_never_charges(self):
        db = _make_db_session()
        tracker = GenerationTracker(db)
        log = _make_log(str(uuid4()))
        log.tokens_charged = 3

        await tracker.log_failure(log, error_message="Generation timed out", duration_ms=180000)

        assert log.status == GenerationStatus.FAILED
        assert log.tokens_charged == 0
        assert log.error_message == "Generation timed out"
        assert log.duration_ms == 180000

    async def test_log_failure_truncates_long_messages(self):
        db = _make_db_session()
        tracker = GenerationTracker(db)
        log = _make_log(str(uuid4()))

        await tracker.log_failure(log, error_message="x" * 5000)

        assert len(log.error_message) == 2000

    async def test_log_failure_empty_message(self):
        db = _make_db_session()
        log = _make_log(str(uuid4()))

        await GenerationTracker(db).log_failure(log, error_message="")

        assert log.error_message is None
