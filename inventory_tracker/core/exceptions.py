"""
Domain errors raised by the inventory services.

Every error carries a human-readable message and the HTTP status the API layer
answers with. A unit conflict is not an error: it is returned as part of a
pre-check result.
"""
from typing import Optional


class InventoryTrackerError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(InventoryTrackerError):
    """Malformed input, rejected before touching the store."""

    status_code = 400


class UnknownSubcategoryError(InvalidRequestError, ValueError):
    """A subcategory outside the known set."""

    def __init__(self, subcategory: str):
        super().__init__(f"Unknown subcategory: {subcategory!r}")
        self.subcategory = subcategory


class NotFoundError(InventoryTrackerError):
    status_code = 404


class RequestNotFoundError(NotFoundError):
    def __init__(self, kind: str, request_id: str):
        super().__init__(f"{kind.capitalize()} request {request_id} not found.")
        self.request_id = request_id


class InventoryItemNotFoundError(NotFoundError):
    def __init__(self, name: str, item_id: Optional[str] = None):
        if item_id:
            message = f"Inventory item {name} (ID: {item_id}) not found."
        else:
            message = f"Inventory item {name} not found."
        super().__init__(message)
        self.name = name
        self.item_id = item_id


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: str):
        super().__init__(f"Notification {notification_id} not found.")


class AlreadyProcessedError(InventoryTrackerError):
    """The request left the pending state before this attempt committed."""

    status_code = 409

    def __init__(self, request_id: str, status: str):
        super().__init__(f"Request has already been {status}.")
        self.request_id = request_id
        self.status = status


class InsufficientStockError(InventoryTrackerError):
    status_code = 422

    def __init__(self, name: str, requested: float, available: float):
        super().__init__(
            f"Insufficient stock for {name}. Requested: {requested:g}, Available: {available:g}."
        )
        self.name = name
        self.requested = requested
        self.available = available


class TransactionConflictError(InventoryTrackerError):
    """
    Concurrent writes touched the same documents; the transaction can be retried.
    """

    status_code = 503


class StalePlanError(InventoryTrackerError):
    """The stored item changed in a way the computed plan cannot absorb."""

    status_code = 409

    def __init__(self, name: str):
        super().__init__(
            f"Inventory item {name} changed while the request was being reviewed. Run the pre-check again."
        )
        self.name = name
