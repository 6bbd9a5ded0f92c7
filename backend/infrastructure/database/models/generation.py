"""
Generation tracking database model.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class GenerationStatus:
    STARTED = "started"
    SUCCESS = "success"
    FAILED = "failed"


class GenerationLog(Base, TimestampMixin):
    """Tracks each paid generation attempt."""

    __tablename__ = "generation_logs"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # User who triggered the generation
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    resource_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="blog_post",
    )
    resource_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )
    """ID of the post that was created; empty until the generation succeeds."""

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )
    """Values: 'started', 'success', 'failed'"""

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    ai_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    input_metadata: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure:
    {
        "character_count": 4200,
        "tokens_required": 1
    }
    """

    tokens_charged: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    """Tokens debited for this attempt. 0 unless a post was persisted."""

    __table_args__ = (
        Index("ix_generation_logs_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<GenerationLog(id={self.id}, status={self.status}, "
            f"user_id={self.user_id}, tokens_charged={self.tokens_charged})>"
        )
