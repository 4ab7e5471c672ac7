"""
Inventory repository for database operations.
"""
from typing import Any, Dict, List, Optional, Union

from inventory_tracker.core.categories import Subcategory, main_category_of
from inventory_tracker.core.exceptions import InvalidRequestError
from inventory_tracker.core.units import Unit, unit_value
from inventory_tracker.db.base_repository import BaseRepository
from inventory_tracker.db.document_store import INVENTORY_COLLECTION, SERVER_TIMESTAMP, DocumentStore
from inventory_tracker.models.inventory import derive_item_id, normalize_name


def build_item_document(
        name: str,
        quantity: float,
        unit: Union[Unit, str],
        subcategory: Optional[Union[Subcategory, str]] = None
) -> Dict[str, Any]:
    """
    Full shape of a new inventory document.

    Args:
        name: Display name as entered
        quantity: Initial quantity
        unit: Unit of the quantity
        subcategory: Optional subcategory; the category is derived from it

    Returns:
        Document data without id
    """
    document = {
        "name": name.strip(),
        "normalized_name": normalize_name(name),
        "quantity": quantity,
        "unit": unit_value(unit),
        "last_updated": SERVER_TIMESTAMP,
    }
    if subcategory is not None:
        document["subcategory"] = subcategory.value if isinstance(subcategory, Subcategory) else subcategory
        document["category"] = main_category_of(subcategory).value
    return document


class InventoryRepository(BaseRepository):
    """
    Repository for inventory item data access.
    Items are matched case-insensitively through `normalized_name`; items
    created before that field existed are still found by their exact name.
    """

    timestamp_field = "last_updated"

    def __init__(self, store: DocumentStore):
        """Initialize with the inventory collection."""
        super().__init__(store, INVENTORY_COLLECTION)

    async def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        return await self.find_by_id(item_id)

    async def create(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an inventory item.

        Without an explicit id the id is derived from the name, so creating the
        same item twice writes the same document.

        Args:
            data: Item fields; `name`, `quantity` and `unit` are required
            doc_id: Optional explicit id

        Returns:
            Created item document

        Raises:
            InvalidRequestError: If required fields are missing or the quantity is negative
        """
        for field in ("name", "quantity", "unit"):
            if data.get(field) is None:
                raise InvalidRequestError(f"Missing required field: {field}")

        self._check_quantity(data["quantity"])

        document = build_item_document(
            data["name"], data["quantity"], data["unit"], data.get("subcategory")
        )
        document.update({
            k: v for k, v in data.items()
            if k not in document and k not in ("_id", "category")
        })

        return await super().create(document, doc_id or derive_item_id(data["name"]))

    async def update(self, item_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update fields of an inventory item.

        `normalized_name` is recomputed when the name changes and back-filled
        when the stored item predates it; `category` follows `subcategory`.

        Args:
            item_id: Item id
            patch: Fields to change

        Returns:
            Updated item document or None if not found
        """
        existing = await self.find_by_id(item_id)
        if not existing:
            return None

        update_data = dict(patch)

        if "quantity" in update_data:
            self._check_quantity(update_data["quantity"])

        if update_data.get("name"):
            update_data["name"] = update_data["name"].strip()
            update_data["normalized_name"] = normalize_name(update_data["name"])
        elif not existing.get("normalized_name") and existing.get("name"):
            update_data["normalized_name"] = normalize_name(existing["name"])

        if update_data.get("unit") is not None:
            update_data["unit"] = unit_value(update_data["unit"])

        if update_data.get("subcategory") is not None:
            subcategory = update_data["subcategory"]
            update_data["category"] = main_category_of(subcategory).value
            update_data["subcategory"] = subcategory.value if isinstance(subcategory, Subcategory) else subcategory

        return await super().update(item_id, update_data)

    async def find_by_normalized_name(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Find an item by name, ignoring case and surrounding whitespace.

        Args:
            name: Item name in any casing

        Returns:
            Item document or None if not found
        """
        return await self.find_one({"normalized_name": normalize_name(name)})

    async def find_all_by_normalized_name(self, name: str) -> List[Dict[str, Any]]:
        """All items sharing a normalized name (they may differ by unit)."""
        return await self.find_many({"normalized_name": normalize_name(name)})

    async def find_by_exact_name(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Find an item by its stored display name.
        Fallback for items created before `normalized_name` existed.
        """
        return await self.find_one({"name": name})

    async def list_items(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        query = {"category": category} if category else {}
        return await self.find_many(query, limit=limit, sort_by="name")

    @staticmethod
    def _check_quantity(quantity: Any) -> None:
        if not isinstance(quantity, (int, float)) or isinstance(quantity, bool):
            raise InvalidRequestError("Quantity must be a number")
        if quantity < 0:
            raise InvalidRequestError("Quantity cannot be negative")
