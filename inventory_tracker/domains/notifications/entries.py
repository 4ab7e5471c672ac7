"""
Builders for the audit log entries and user notifications written when a
request is decided.
"""
from typing import Any, Dict, List, Optional

from inventory_tracker.db.document_store import SERVER_TIMESTAMP
from inventory_tracker.models.notification import LogActionType, NotificationType
from inventory_tracker.models.request import ChangeRequest, RequestKind
from inventory_tracker.models.user import CurrentUser

DEFAULT_REJECTION_NOTE = "No specific reason provided."


def _summarize(kind: RequestKind, items: List[Dict[str, Any]]) -> str:
    if len(items) == 1:
        item = items[0]
        return f"Your {kind.value} request for {item['quantity']:g} {item['unit']} of {item['name']}"
    return f"Your {kind.value} request for {len(items)} items"


def build_action_log_entry(
        request: ChangeRequest,
        admin: CurrentUser,
        approved: bool,
        items: List[Dict[str, Any]],
        notes: Optional[str] = None
) -> Dict[str, Any]:
    """
    Audit log entry for an approval or rejection.

    Args:
        request: Request being decided
        admin: Deciding admin
        approved: True for an approval
        items: Line items the decision covers, as stored
        notes: Rejection notes

    Returns:
        Log document data
    """
    verb = "approved" if approved else "rejected"
    details: Dict[str, Any] = {
        "message": f"Admin {admin.name} {verb} {request.kind.value} request {request.id} "
                   f"from user {request.user_name}."
    }
    if approved:
        details["approved_items"] = items
    else:
        details["rejected_items"] = items
        details["reason"] = notes

    return {
        "action_type": LogActionType.for_decision(request.kind, approved).value,
        "request_id": request.id,
        "user_id": request.user_id,
        "user_name": request.user_name,
        "admin_id": admin.id,
        "admin_name": admin.name,
        "timestamp": SERVER_TIMESTAMP,
        "details": details,
    }


def build_approval_notification(request: ChangeRequest, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Notification telling the requester their request was approved.
    Removal notifications keep the approved items for the detail view.
    """
    message = f"{_summarize(request.kind, items)} has been approved."
    if request.kind is RequestKind.REMOVAL:
        message += " Inventory updated."

    notification = {
        "user_id": request.user_id,
        "type": NotificationType.REQUEST_APPROVED.value,
        "message": message,
        "request_id": request.id,
        "request_kind": request.kind.value,
        "timestamp": SERVER_TIMESTAMP,
        "is_read": False,
    }
    if request.kind is RequestKind.REMOVAL:
        notification["approved_items"] = [
            {"name": item["name"], "quantity": item["quantity"], "unit": item["unit"]}
            for item in items
        ]
    return notification


def build_rejection_notification(request: ChangeRequest, notes: str) -> Dict[str, Any]:
    count = len(request.requested_items)
    return {
        "user_id": request.user_id,
        "type": NotificationType.REQUEST_REJECTED.value,
        "message": f"Your {request.kind.value} request for {count} item(s) has been rejected. Notes: {notes}",
        "request_id": request.id,
        "request_kind": request.kind.value,
        "admin_notes": notes,
        "timestamp": SERVER_TIMESTAMP,
        "is_read": False,
    }
