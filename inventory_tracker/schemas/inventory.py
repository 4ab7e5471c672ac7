# inventory_tracker/schemas/inventory.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class InventoryItemResponse(BaseModel):
    """Schema for returning an inventory item"""
    id: str = Field(..., alias="_id")
    name: str
    normalized_name: Optional[str] = None
    quantity: float
    unit: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    last_updated: Optional[datetime] = None

    model_config = {
        "populate_by_name": True
    }
