"""
Account API routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.blog import AccountResponse, AccountUserResponse
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.access_gate import AccessGate

router = APIRouter(tags=["Account"])


@router.get("/account", response_model=AccountResponse)
async def get_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user with entitlement and token balance for the dashboard."""
    access = await AccessGate(db).check_access(current_user.id)
    return AccountResponse(
        user=AccountUserResponse.model_validate(current_user),
        has_access=access.has_access,
        tokens=access.tokens,
    )
