# inventory_tracker/models/approval.py
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from inventory_tracker.models.request import LineItem, RequestKind, RequestStatus


class PlannedActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class UnitResolution(str, Enum):
    """Admin choice for an item whose units cannot be converted"""
    USE_INCOMING = "use_incoming"  # switch the stored item to the requested unit
    KEEP_EXISTING = "keep_existing"  # keep the stored unit


class PlannedAction(BaseModel):
    """What approving one line item will do to the inventory"""
    action: PlannedActionType
    doc_id: str
    item: LineItem
    quantity: float  # delta expressed in `unit`
    unit: str
    existing_unit: Optional[str] = None
    unit_resolution: Optional[UnitResolution] = None


class UnitConflict(BaseModel):
    """A line item whose unit cannot be converted to the stored item's unit"""
    item: LineItem
    existing_unit: str
    existing_doc_id: str


class PrecheckResult(BaseModel):
    plan: List[PlannedAction] = []
    conflict: Optional[UnitConflict] = None

    @property
    def has_conflict(self) -> bool:
        return self.conflict is not None


class ApprovalResult(BaseModel):
    request_id: str
    kind: RequestKind
    status: RequestStatus
    items: List[Dict[str, Any]] = []


class ApprovalOutcome(BaseModel):
    """Either a committed approval or the conflict that stopped it"""
    result: Optional[ApprovalResult] = None
    conflict: Optional[UnitConflict] = None
