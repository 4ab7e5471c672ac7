"""
Auth API routes.

Sessions are issued by the identity provider; this API only reads them.
"""
from fastapi import APIRouter, Depends

from inventory_tracker.dependencies.permissions import get_current_user
from inventory_tracker.models.user import CurrentUser
from inventory_tracker.schemas.user import UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: CurrentUser = Depends(get_current_user)):
    """
    Get the user the session cookie belongs to.
    """
    return current_user
