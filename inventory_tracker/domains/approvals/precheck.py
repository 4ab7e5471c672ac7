"""
Pre-check for request approval.

Resolves every requested line item against the current inventory and decides
whether approving it creates a new item or updates an existing one. Only reads
from the store; the approval engine commits the resulting plan.
"""
import logging
from typing import Any, Dict, List, Optional

from inventory_tracker.core.exceptions import InventoryItemNotFoundError
from inventory_tracker.core.units import convert, is_convertible
from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.domains.inventory.repository import InventoryRepository
from inventory_tracker.models.approval import (
    PlannedAction,
    PlannedActionType,
    PrecheckResult,
    UnitConflict,
    UnitResolution,
)
from inventory_tracker.models.inventory import derive_item_id, normalize_name
from inventory_tracker.models.request import LineItem, RequestKind

logger = logging.getLogger(__name__)


class PrecheckService:
    """
    Computes the action plan for a batch of line items, or the first unit
    conflict that needs an admin decision.
    """

    def __init__(self, store: DocumentStore, inventory_repo: Optional[InventoryRepository] = None):
        self.inventory_repo = inventory_repo or InventoryRepository(store)

    async def precheck(
            self,
            kind: RequestKind,
            items: List[LineItem],
            resolutions: Optional[Dict[str, UnitResolution]] = None
    ) -> PrecheckResult:
        """
        Resolve a batch of line items against the inventory.

        Args:
            kind: Addition or removal
            items: Requested line items
            resolutions: Admin unit choices keyed by item name (any casing)

        Returns:
            PrecheckResult holding either the plan or the conflict that halted it

        Raises:
            InventoryItemNotFoundError: If a removal line matches no inventory item
        """
        resolutions = {normalize_name(name): choice for name, choice in (resolutions or {}).items()}
        plan = []
        # Items this batch creates, by id; later lines for the same id update them
        planned_creates: Dict[str, Dict[str, Any]] = {}

        for item in items:
            existing = await self.find_existing(kind, item)

            if existing is None:
                if kind is RequestKind.REMOVAL:
                    raise InventoryItemNotFoundError(item.name, item.item_id)
                doc_id = derive_item_id(item.name)
                existing = planned_creates.get(doc_id)

            if existing is None:
                planned_creates[doc_id] = {"_id": doc_id, "name": item.name, "unit": item.unit.value}
                plan.append(PlannedAction(
                    action=PlannedActionType.CREATE,
                    doc_id=doc_id,
                    item=item,
                    quantity=item.quantity,
                    unit=item.unit.value,
                ))
                continue

            # Items stored before units were recorded conflict with every unit
            existing_unit = existing.get("unit") or ""

            if existing_unit == item.unit.value:
                plan.append(PlannedAction(
                    action=PlannedActionType.UPDATE,
                    doc_id=existing["_id"],
                    item=item,
                    quantity=item.quantity,
                    unit=existing_unit,
                    existing_unit=existing_unit,
                ))
                continue

            converted = convert(item.quantity, item.unit, existing_unit)
            if converted is not None:
                plan.append(PlannedAction(
                    action=PlannedActionType.UPDATE,
                    doc_id=existing["_id"],
                    item=item,
                    quantity=converted,
                    unit=existing_unit,
                    existing_unit=existing_unit,
                ))
                continue

            resolution = resolutions.get(normalize_name(item.name))
            if resolution is None:
                logger.info(
                    f"Unit conflict for {item.name}: requested {item.unit.value}, "
                    f"stored {existing_unit} on {existing['_id']}"
                )
                return PrecheckResult(conflict=UnitConflict(
                    item=item,
                    existing_unit=existing_unit,
                    existing_doc_id=existing["_id"],
                ))

            # No conversion: quantities are summed as they are
            target_unit = item.unit.value if resolution is UnitResolution.USE_INCOMING else existing_unit
            plan.append(PlannedAction(
                action=PlannedActionType.UPDATE,
                doc_id=existing["_id"],
                item=item,
                quantity=item.quantity,
                unit=target_unit,
                existing_unit=existing_unit,
                unit_resolution=resolution,
            ))

        return PrecheckResult(plan=plan)

    async def find_existing(self, kind: RequestKind, item: LineItem) -> Optional[Dict[str, Any]]:
        """
        Find the inventory item a line item refers to.

        Removal lines that carry an item id are matched by id first. Then the
        normalized name is used; when several items share it, one with the same
        unit wins over one with a convertible unit. Items that predate
        normalized names are found by exact name.
        """
        if kind is RequestKind.REMOVAL and item.item_id:
            existing = await self.inventory_repo.get(item.item_id)
            if existing:
                return existing

        candidates = await self.inventory_repo.find_all_by_normalized_name(item.name)
        if candidates:
            for candidate in candidates:
                if candidate.get("unit") == item.unit.value:
                    return candidate
            for candidate in candidates:
                if is_convertible(item.unit, candidate.get("unit")):
                    return candidate
            return candidates[0]

        return await self.inventory_repo.find_by_exact_name(item.name)
