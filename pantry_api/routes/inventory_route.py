from fastapi import APIRouter, HTTPException, Path, Query, status, Depends

from pantry_api.models.inventory_item import InventoryItem, InventoryList, InventoryUpdate
from pantry_api.crud.ledger import (
    add_many,
    add_one,
    get_item,
    list_inventory,
    remove_one,
)
from pantry_api.db import get_store
from pantry_api.store import DocumentStore

from pantry_api.logging_config import tracer, get_child_logger

# Create a child logger for this module
logger = get_child_logger("routes.inventory")

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/", response_model=InventoryList)
async def get_inventory(store: DocumentStore = Depends(get_store)):
    with tracer.start_as_current_span("api_get_inventory") as span:
        result = await list_inventory(store)
        span.set_attribute("items.count", len(result.items))
        return result


@router.get("/{item_id}", response_model=InventoryItem)
async def get_inventory_item(
    item_id: str = Path(..., title="The name of the item"),
    store: DocumentStore = Depends(get_store),
):
    item = await get_item(store, item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inventory item '{item_id.strip()}' not found",
        )
    return item


@router.post("/{item_id}/add", response_model=InventoryUpdate)
async def add_inventory_item(
    item_id: str = Path(..., title="The name of the item to add"),
    count: int = Query(1, ge=1, title="How many units to add"),
    store: DocumentStore = Depends(get_store),
):
    with tracer.start_as_current_span("api_add_inventory_item") as span:
        span.set_attribute("count", count)
        logger.info(
            "Handling add intent", extra={"item_id": item_id, "count": count}
        )
        if count == 1:
            item = await add_one(store, item_id)
        else:
            item = await add_many(store, item_id, count)
        inventory = await list_inventory(store)
        return InventoryUpdate(item=item, inventory=inventory.items)


@router.post("/{item_id}/remove", response_model=InventoryUpdate)
async def remove_inventory_item(
    item_id: str = Path(..., title="The name of the item to remove"),
    store: DocumentStore = Depends(get_store),
):
    with tracer.start_as_current_span("api_remove_inventory_item"):
        logger.info("Handling remove intent", extra={"item_id": item_id})
        item = await remove_one(store, item_id)
        inventory = await list_inventory(store)
        return InventoryUpdate(item=item, inventory=inventory.items)
