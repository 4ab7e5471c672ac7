# inventory_tracker/schemas/notification.py
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    """Schema for returning a notification"""
    id: str = Field(..., alias="_id")
    user_id: str
    type: str
    message: str
    request_id: Optional[str] = None
    request_kind: Optional[str] = None
    admin_notes: Optional[str] = None
    approved_items: Optional[List[Dict[str, Any]]] = None
    timestamp: Optional[datetime] = None
    is_read: bool = False

    model_config = {
        "populate_by_name": True
    }


class MarkAllReadResponse(BaseModel):
    updated: int


class ActionLogResponse(BaseModel):
    """Schema for returning an action log entry"""
    id: str = Field(..., alias="_id")
    action_type: str
    request_id: str
    user_id: str
    user_name: Optional[str] = None
    admin_id: str
    admin_name: Optional[str] = None
    timestamp: Optional[datetime] = None
    details: Dict[str, Any] = {}

    model_config = {
        "populate_by_name": True
    }
