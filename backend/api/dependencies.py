"""
API dependencies for authentication and service wiring.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai import content_ai_service, image_ai_service
from adapters.ai.anthropic_adapter import AnthropicContentService
from adapters.ai.replicate_adapter import ReplicateImageService
from core.security.tokens import TokenService
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User

# Verifies session tokens issued by the identity provider
token_service = TokenService(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
    access_token_expire_minutes=settings.jwt_access_token_expire_minutes,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.

    Checks the Authorization header first (Bearer token), then falls back to
    the identity provider's session cookie for browser requests.
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        parts = authorization.split(" ", 1)
        token = parts[1] if len(parts) > 1 and parts[1] else None

    if not token:
        token = request.cookies.get(settings.session_cookie_name)

    if not token:
        raise _unauthorized("Unauthorized")

    payload = token_service.verify_access_token(token)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == payload.sub))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthorized("User not found")

    return user


def get_content_service() -> AnthropicContentService:
    """Text generation client; overridden in tests."""
    return content_ai_service


def get_image_service() -> ReplicateImageService:
    """Image generation client; overridden in tests."""
    return image_ai_service
