# inventory_tracker/dependencies/services.py
from fastapi import Depends

from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.db.mongodb import get_document_store
from inventory_tracker.domains.approvals.service import ApprovalService
from inventory_tracker.domains.inventory.service import InventoryService
from inventory_tracker.domains.notifications.service import NotificationService
from inventory_tracker.domains.requests.service import RequestService


def get_inventory_service(store: DocumentStore = Depends(get_document_store)) -> InventoryService:
    return InventoryService(store)


def get_request_service(store: DocumentStore = Depends(get_document_store)) -> RequestService:
    return RequestService(store)


def get_approval_service(store: DocumentStore = Depends(get_document_store)) -> ApprovalService:
    return ApprovalService(store)


def get_notification_service(store: DocumentStore = Depends(get_document_store)) -> NotificationService:
    return NotificationService(store)
