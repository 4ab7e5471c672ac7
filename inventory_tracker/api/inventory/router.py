# inventory_tracker/api/inventory/router.py
from typing import List, Optional
from fastapi import APIRouter, Depends, status

from inventory_tracker.core.categories import Category
from inventory_tracker.dependencies.permissions import get_current_admin, get_current_user
from inventory_tracker.dependencies.services import get_inventory_service
from inventory_tracker.domains.inventory.service import InventoryService
from inventory_tracker.models.user import CurrentUser
from inventory_tracker.schemas.inventory import InventoryItemResponse

router = APIRouter()


@router.get("/", response_model=List[InventoryItemResponse])
async def get_inventory_items(
        category: Optional[Category] = None,
        limit: Optional[int] = None,
        current_user: CurrentUser = Depends(get_current_user),
        inventory_service: InventoryService = Depends(get_inventory_service)
):
    """
    Get inventory items, optionally filtered by main category
    """
    return await inventory_service.get_items(
        category=category.value if category else None,
        limit=limit
    )


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_inventory_item(
        item_id: str,
        current_user: CurrentUser = Depends(get_current_user),
        inventory_service: InventoryService = Depends(get_inventory_service)
):
    """
    Get inventory item by ID
    """
    return await inventory_service.get_item(item_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item(
        item_id: str,
        current_user: CurrentUser = Depends(get_current_admin),
        inventory_service: InventoryService = Depends(get_inventory_service)
):
    """
    Delete an inventory item
    """
    await inventory_service.delete_item(item_id)
