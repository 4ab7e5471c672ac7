# inventory_tracker/schemas/user.py
from pydantic import BaseModel


class UserResponse(BaseModel):
    """Schema for returning the signed-in user"""
    id: str
    name: str
    is_admin: bool
