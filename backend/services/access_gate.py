"""
Access gate for paid generation.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessInfo:
    """Whether a user may generate, and how many tokens they hold."""

    has_access: bool
    tokens: int


NO_ACCESS = AccessInfo(has_access=False, tokens=0)


class AccessGate:
    """Reports entitlement and token balance for a user.

    Fails closed: a lookup error is logged and reported as "no access, zero
    tokens" so callers always get a deterministic deny.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_access(self, user_id: str) -> AccessInfo:
        try:
            result = await self.db.execute(
                select(User)
                .where(User.id == user_id)
                .execution_options(populate_existing=True)
            )
            user = result.scalar_one_or_none()
            if user is None:
                return NO_ACCESS
            return AccessInfo(has_access=user.has_paid_access(), tokens=max(user.tokens or 0, 0))
        except Exception as e:
            logger.error("Access check failed for user %s: %s", user_id, e)
            return NO_ACCESS

    async def get_user_tokens(self, user_id: str) -> int:
        """Current token balance, 0 when it cannot be determined."""
        return (await self.check_access(user_id)).tokens
