"""
SQLAlchemy database models.
"""

from .admin import AdminAuditLog, AuditAction, AuditTargetType
from .base import Base, TimestampMixin
from .generation import GenerationLog, GenerationStatus
from .post import BlogPost
from .user import SubscriptionStatus, SubscriptionTier, User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "SubscriptionTier",
    "SubscriptionStatus",
    "BlogPost",
    "GenerationLog",
    "GenerationStatus",
    "AdminAuditLog",
    "AuditAction",
    "AuditTargetType",
]
