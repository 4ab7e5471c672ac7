"""
Approval transaction engine.

Commits an approval plan or a rejection as one transaction: the request status
flip, the inventory changes, the action log entry and the user notification
are written together or not at all.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from inventory_tracker.core.exceptions import (
    AlreadyProcessedError,
    InsufficientStockError,
    InvalidRequestError,
    InventoryItemNotFoundError,
    RequestNotFoundError,
    StalePlanError,
)
from inventory_tracker.core.units import convert
from inventory_tracker.db.document_store import (
    ACTION_LOGS_COLLECTION,
    INVENTORY_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    SERVER_TIMESTAMP,
    DocumentStore,
    Transaction,
)
from inventory_tracker.domains.inventory.repository import build_item_document
from inventory_tracker.domains.notifications.entries import (
    DEFAULT_REJECTION_NOTE,
    build_action_log_entry,
    build_approval_notification,
    build_rejection_notification,
)
from inventory_tracker.models.approval import ApprovalResult, PlannedAction, PlannedActionType, UnitResolution
from inventory_tracker.models.inventory import normalize_name
from inventory_tracker.models.request import ChangeRequest, RequestKind, RequestStatus
from inventory_tracker.models.user import CurrentUser

logger = logging.getLogger(__name__)

# Decimal places kept on stored quantities, absorbs float residue such as 0.30000000000000004
QUANTITY_PRECISION = 9


class _InventoryChanges:
    """
    Working copies of the inventory documents touched by one transaction.
    Several lines of a batch may hit the same document; each sees the effect
    of the previous ones.
    """

    def __init__(self, transaction: Transaction):
        self.transaction = transaction
        self.documents: Dict[str, Optional[Dict[str, Any]]] = {}
        self.created: Dict[str, Dict[str, Any]] = {}
        self.patches: Dict[str, Dict[str, Any]] = {}

    async def read(self, doc_id: str) -> Optional[Dict[str, Any]]:
        if doc_id not in self.documents:
            self.documents[doc_id] = await self.transaction.get(INVENTORY_COLLECTION, doc_id)
        return self.documents[doc_id]

    def create(self, doc_id: str, document: Dict[str, Any]) -> None:
        self.documents[doc_id] = {**document, "_id": doc_id}
        self.created[doc_id] = document

    def patch(self, doc_id: str, changes: Dict[str, Any]) -> None:
        self.documents[doc_id] = {**self.documents[doc_id], **changes}
        if doc_id in self.created:
            self.created[doc_id].update(changes)
        else:
            self.patches.setdefault(doc_id, {}).update(changes)

    def stage(self) -> None:
        for doc_id, document in self.created.items():
            self.transaction.set(INVENTORY_COLLECTION, doc_id, document)
        for doc_id, changes in self.patches.items():
            self.transaction.update(INVENTORY_COLLECTION, doc_id, {**changes, "last_updated": SERVER_TIMESTAMP})


class ApprovalEngine:
    """
    Executes approvals and rejections atomically against the store.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def approve(
            self,
            kind: RequestKind,
            request_id: str,
            plan: List[PlannedAction],
            admin: CurrentUser
    ) -> ApprovalResult:
        """
        Approve a pending request by committing its plan.

        The request and every targeted inventory item are read again inside the
        transaction; the plan only decides which documents are created or updated.

        Args:
            kind: Addition or removal
            request_id: Request ID
            plan: Actions computed by the pre-check
            admin: Approving admin

        Returns:
            ApprovalResult with the resulting state of every touched item

        Raises:
            RequestNotFoundError: If the request does not exist
            AlreadyProcessedError: If the request is no longer pending
            InsufficientStockError: If a removal would drive a quantity below zero
            InventoryItemNotFoundError: If an item to update no longer exists
            StalePlanError: If an item changed unit in a way the plan cannot absorb
        """
        if not plan:
            raise InvalidRequestError("No items found in request")

        async def apply(transaction: Transaction) -> ApprovalResult:
            request = await self._load_pending(transaction, kind, request_id)
            changes = _InventoryChanges(transaction)

            for action in plan:
                if kind is RequestKind.ADDITION:
                    await self._apply_addition(changes, action)
                else:
                    await self._apply_removal(changes, action)

            changes.stage()

            transaction.update(kind.collection, request_id, {
                "status": RequestStatus.APPROVED.value,
                "admin_id": admin.id,
                "admin_name": admin.name,
                "processed_timestamp": SERVER_TIMESTAMP,
            })

            line_items = [action.item.to_document() for action in plan]
            transaction.add(ACTION_LOGS_COLLECTION, build_action_log_entry(request, admin, True, line_items))
            transaction.add(NOTIFICATIONS_COLLECTION, build_approval_notification(request, line_items))

            touched = []
            for doc_id in dict.fromkeys(action.doc_id for action in plan):
                document = changes.documents[doc_id]
                touched.append({
                    "id": doc_id,
                    "name": document.get("name"),
                    "quantity": document.get("quantity"),
                    "unit": document.get("unit"),
                })

            return ApprovalResult(
                request_id=request_id,
                kind=kind,
                status=RequestStatus.APPROVED,
                items=touched,
            )

        result = await self.store.run_transaction(apply)
        logger.info(f"Admin {admin.id} approved {kind.value} request {request_id} ({len(plan)} item(s))")
        return result

    async def reject(
            self,
            kind: RequestKind,
            request_id: str,
            admin: CurrentUser,
            notes: Optional[str] = None
    ) -> ApprovalResult:
        """
        Reject a pending request. Inventory is left untouched.

        Args:
            kind: Addition or removal
            request_id: Request ID
            admin: Rejecting admin
            notes: Reason shown to the requester

        Returns:
            ApprovalResult with status rejected

        Raises:
            RequestNotFoundError: If the request does not exist
            AlreadyProcessedError: If the request is no longer pending
        """
        notes = notes.strip() if notes and notes.strip() else DEFAULT_REJECTION_NOTE

        async def apply(transaction: Transaction) -> ApprovalResult:
            request = await self._load_pending(transaction, kind, request_id)

            transaction.update(kind.collection, request_id, {
                "status": RequestStatus.REJECTED.value,
                "admin_id": admin.id,
                "admin_name": admin.name,
                "processed_timestamp": SERVER_TIMESTAMP,
                "admin_notes": notes,
            })

            line_items = [item.to_document() for item in request.requested_items]
            transaction.add(ACTION_LOGS_COLLECTION, build_action_log_entry(request, admin, False, line_items, notes))
            transaction.add(NOTIFICATIONS_COLLECTION, build_rejection_notification(request, notes))

            return ApprovalResult(
                request_id=request_id,
                kind=kind,
                status=RequestStatus.REJECTED,
                items=line_items,
            )

        result = await self.store.run_transaction(apply)
        logger.info(f"Admin {admin.id} rejected {kind.value} request {request_id}")
        return result

    @staticmethod
    async def _load_pending(transaction: Transaction, kind: RequestKind, request_id: str) -> ChangeRequest:
        document = await transaction.get(kind.collection, request_id)
        if document is None:
            raise RequestNotFoundError(kind.value, request_id)

        status = document.get("status")
        if status != RequestStatus.PENDING.value:
            raise AlreadyProcessedError(request_id, status)

        try:
            return ChangeRequest.from_document(kind, document)
        except ValidationError as e:
            raise InvalidRequestError(f"Request {request_id} is malformed: {e.error_count()} validation error(s)")

    @staticmethod
    def _delta_for(action: PlannedAction, document: Dict[str, Any]) -> float:
        """
        Quantity to apply to the stored document, in the document's unit.
        """
        if action.unit_resolution is not None:
            return action.quantity

        stored_unit = document.get("unit")
        if stored_unit == action.unit:
            return action.quantity

        # The stored unit changed after the pre-check
        converted = convert(action.quantity, action.unit, stored_unit)
        if converted is None:
            raise StalePlanError(action.item.name)
        return converted

    def _identity_backfill(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if document.get("normalized_name") or not document.get("name"):
            return {}
        return {"normalized_name": normalize_name(document["name"])}

    async def _apply_addition(self, changes: _InventoryChanges, action: PlannedAction) -> None:
        item = action.item
        document = await changes.read(action.doc_id)

        if action.action is PlannedActionType.CREATE and document is None:
            changes.create(action.doc_id, build_item_document(
                item.name, action.quantity, action.unit, item.subcategory
            ))
            return

        if document is None:
            raise InventoryItemNotFoundError(item.name, action.doc_id)

        # Also covers a planned create whose id was taken meanwhile: same name, same id
        delta = self._delta_for(action, document)
        patch = {"quantity": round((document.get("quantity") or 0) + delta, QUANTITY_PRECISION)}

        if action.unit_resolution is UnitResolution.USE_INCOMING:
            patch["unit"] = item.unit.value

        patch.update(self._identity_backfill(document))
        changes.patch(action.doc_id, patch)

    async def _apply_removal(self, changes: _InventoryChanges, action: PlannedAction) -> None:
        item = action.item
        document = await changes.read(action.doc_id)
        if document is None:
            raise InventoryItemNotFoundError(item.name, action.doc_id)

        delta = self._delta_for(action, document)
        current = document.get("quantity") or 0
        new_quantity = round(current - delta, QUANTITY_PRECISION)

        if new_quantity < 0:
            raise InsufficientStockError(item.name, delta, current)

        patch = {"quantity": new_quantity}
        if action.unit_resolution is UnitResolution.USE_INCOMING:
            patch["unit"] = item.unit.value

        patch.update(self._identity_backfill(document))
        changes.patch(action.doc_id, patch)
