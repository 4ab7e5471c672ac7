# inventory_tracker/schemas/approval.py
from typing import Dict, Optional
from pydantic import BaseModel

from inventory_tracker.models.approval import UnitResolution


class PrecheckBody(BaseModel):
    """Schema for pre-checking a request with optional unit choices"""
    resolutions: Dict[str, UnitResolution] = {}


class ApproveBody(BaseModel):
    """Schema for approving a request; keys of `resolutions` are item names"""
    resolutions: Dict[str, UnitResolution] = {}


class RejectBody(BaseModel):
    """Schema for rejecting a request"""
    notes: Optional[str] = None
