"""
Generation tracking service.
Logs every generation attempt and records the tokens charged only on success.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.generation import GenerationLog, GenerationStatus


class GenerationTracker:
    """Writes GenerationLog rows. Callers own commit boundaries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_start(
        self,
        user_id: str,
        resource_type: str = "blog_post",
        input_metadata: Optional[dict] = None,
    ) -> GenerationLog:
        """Log the start of a generation. Returns the log entry for later update."""
        log = GenerationLog(
            id=str(uuid4()),
            user_id=user_id,
            resource_type=resource_type,
            status=GenerationStatus.STARTED,
            input_metadata=input_metadata,
            tokens_charged=0,  # Not charged yet
        )
        self.db.add(log)
        await self.db.flush()
        return log

    async def log_success(
        self,
        log: GenerationLog,
        resource_id: str,
        tokens_charged: int,
        ai_model: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Mark the generation as successful and record what it cost."""
        log.status = GenerationStatus.SUCCESS
        log.resource_id = resource_id
        log.tokens_charged = tokens_charged
        log.ai_model = ai_model
        log.duration_ms = duration_ms
        await self.db.flush()

    async def log_failure(
        self,
        log: GenerationLog,
        error_message: str,
        ai_model: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Mark the generation as failed. Nothing is charged."""
        log.status = GenerationStatus.FAILED
        log.error_message = error_message[:2000] if error_message else None
        log.ai_model = ai_model
        log.duration_ms = duration_ms
        log.tokens_charged = 0  # NOT charged on failure
        await self.db.flush()
