from fastapi import APIRouter, Depends

from oliver.dependencies import get_current_user
from oliver.models.user import User
from oliver.schemas.user import UserResponse
from oliver.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
):
    """Get current authenticated user's profile"""
    return current_user
