# inventory_tracker/models/notification.py
from enum import Enum

from inventory_tracker.models.request import RequestKind


class NotificationType(str, Enum):
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"


class LogActionType(str, Enum):
    APPROVE_ADDITION_REQUEST = "approve_addition_request"
    APPROVE_REMOVAL_REQUEST = "approve_removal_request"
    REJECT_ADDITION_REQUEST = "reject_addition_request"
    REJECT_REMOVAL_REQUEST = "reject_removal_request"

    @classmethod
    def for_decision(cls, kind: RequestKind, approved: bool) -> "LogActionType":
        verb = "approve" if approved else "reject"
        return cls(f"{verb}_{kind.value}_request")
