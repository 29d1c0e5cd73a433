"""
User endpoints — thin HTTP layer.
"""

from typing import Any

from fastapi import APIRouter, Depends

from app.domain.models import UserProfile
from app.services.auth_service import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfile)
async def get_my_profile(
    current_user: dict[str, Any] = Depends(get_current_user),
):
    """Return the authenticated user's profile."""
    return UserProfile(**current_user)
