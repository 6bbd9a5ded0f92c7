"""
User database model.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class UserRole(str, Enum):
    """User roles enumeration."""

    USER = "USER"
    ADMIN = "ADMIN"
    BANNED = "BANNED"


class SubscriptionTier(str, Enum):
    """Subscription tier enumeration."""

    FREE = "free"
    PREMIUM = "premium"


class SubscriptionStatus(str, Enum):
    """Subscription status as reported by the billing provider."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    PAUSED = "paused"
    PAST_DUE = "past_due"
    EXPIRED = "expired"


class User(Base, TimestampMixin):
    """User account model.

    Rows are created by the identity provider on first sign-in; this service
    only reads identity fields and mutates ``role`` and ``tokens``.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Identity (owned by the identity provider)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
    )

    # Generation quota
    tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Subscription (written by the billing webhook)
    subscription_tier: Mapped[str] = mapped_column(
        String(50),
        default=SubscriptionTier.FREE.value,
        nullable=False,
    )
    subscription_status: Mapped[str] = mapped_column(
        String(50),
        default=SubscriptionStatus.ACTIVE.value,
        nullable=False,
    )
    subscription_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("tokens >= 0", name="ck_users_tokens_non_negative"),
        Index("ix_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def role_enum(self) -> UserRole:
        return UserRole(self.role)

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN.value

    @property
    def is_banned(self) -> bool:
        return self.role == UserRole.BANNED.value

    def has_paid_access(self, now: Optional[datetime] = None) -> bool:
        """Check whether the user's subscription currently grants paid generation."""
        if self.is_banned or self.subscription_tier == SubscriptionTier.FREE.value:
            return False

        now = now or datetime.now(timezone.utc)
        expires = self.subscription_expires
        # SQLite hands back naive datetimes
        if expires is not None and expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)

        if self.subscription_status == SubscriptionStatus.ACTIVE.value:
            return expires is None or expires > now
        if self.subscription_status == SubscriptionStatus.CANCELLED.value:
            # Cancelled plans stay usable until the paid period ends
            return expires is not None and expires > now
        return False
