# inventory_tracker/models/request.py
from enum import Enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from inventory_tracker.core.categories import Category, Subcategory, main_category_of
from inventory_tracker.core.units import Unit
from inventory_tracker.db.document_store import ADDITION_REQUESTS_COLLECTION, REMOVAL_REQUESTS_COLLECTION


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestKind(str, Enum):
    ADDITION = "addition"
    REMOVAL = "removal"

    @property
    def collection(self) -> str:
        """Collection holding requests of this kind"""
        if self is RequestKind.ADDITION:
            return ADDITION_REQUESTS_COLLECTION
        return REMOVAL_REQUESTS_COLLECTION


class LineItem(BaseModel):
    """A single item within an addition or removal request"""
    name: str
    quantity: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("quantity", "quantity_to_add", "quantity_to_remove"),
    )
    unit: Unit
    subcategory: Optional[Subcategory] = None
    category: Optional[Category] = None
    item_id: Optional[str] = None  # removal lines may point at an inventory document

    model_config = {
        "populate_by_name": True
    }

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Item name must not be empty")
        return value

    @model_validator(mode="after")
    def derive_category(self) -> "LineItem":
        # category always follows the subcategory
        if self.subcategory is not None:
            self.category = main_category_of(self.subcategory)
        return self

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ChangeRequest(BaseModel):
    """
    An addition or removal request as stored.

    Older documents carry a single `requested_item` instead of the
    `requested_items` list; both are read into `requested_items`.
    """
    id: str = Field(..., alias="_id")
    kind: RequestKind
    user_id: str
    user_name: str
    requested_items: List[LineItem]
    request_timestamp: Optional[datetime] = None
    status: RequestStatus = RequestStatus.PENDING
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    processed_timestamp: Optional[datetime] = None
    admin_notes: Optional[str] = None

    model_config = {
        "populate_by_name": True
    }

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_item(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("requested_items"):
            legacy_item = data.get("requested_item")
            data = {k: v for k, v in data.items() if k != "requested_item"}
            data["requested_items"] = [legacy_item] if legacy_item else []
        return data

    @classmethod
    def from_document(cls, kind: RequestKind, document: Dict[str, Any]) -> "ChangeRequest":
        return cls.model_validate({**document, "kind": kind})

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
