"""
Inventory service for business logic.
"""
import logging
from typing import Any, Dict, List, Optional

from inventory_tracker.core.exceptions import InventoryItemNotFoundError
from inventory_tracker.db.document_store import DocumentStore
from inventory_tracker.domains.inventory.repository import InventoryRepository

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Read access to stock plus the admin-only removal of an item.
    Quantities only change through approved requests.
    """

    def __init__(self, store: DocumentStore, inventory_repo: Optional[InventoryRepository] = None):
        """
        Initialize with inventory repository.

        Args:
            store: Document store
            inventory_repo: Optional inventory repository instance
        """
        self.inventory_repo = inventory_repo or InventoryRepository(store)

    async def get_items(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.inventory_repo.list_items(category=category, limit=limit)

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        """
        Get an inventory item by ID.

        Raises:
            InventoryItemNotFoundError: If the item does not exist
        """
        item = await self.inventory_repo.get(item_id)
        if not item:
            raise InventoryItemNotFoundError(item_id)
        return item

    async def delete_item(self, item_id: str) -> None:
        """
        Delete an inventory item.

        Raises:
            InventoryItemNotFoundError: If the item does not exist
        """
        if not await self.inventory_repo.delete(item_id):
            raise InventoryItemNotFoundError(item_id)
        logger.info(f"Deleted inventory item {item_id}")
