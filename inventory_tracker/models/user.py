# inventory_tracker/models/user.py
from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Identity taken from a verified session cookie"""
    id: str
    name: str
    is_admin: bool = False
