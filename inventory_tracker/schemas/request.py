# inventory_tracker/schemas/request.py
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from inventory_tracker.models.request import LineItem, RequestKind, RequestStatus


class LineItemCreate(BaseModel):
    """Schema for one item of a new request, validated by the service"""
    name: str
    quantity: float
    unit: str
    subcategory: Optional[str] = None
    item_id: Optional[str] = None


class RequestCreate(BaseModel):
    """Schema for submitting an addition or removal request"""
    items: List[LineItemCreate]


class RequestResponse(BaseModel):
    """Schema for returning a request"""
    id: str = Field(..., alias="_id")
    kind: RequestKind
    user_id: str
    user_name: str
    requested_items: List[LineItem]
    request_timestamp: Optional[datetime] = None
    status: RequestStatus
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    processed_timestamp: Optional[datetime] = None
    admin_notes: Optional[str] = None

    model_config = {
        "populate_by_name": True
    }
