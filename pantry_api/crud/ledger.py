from typing import Optional

from pantry_api.db import Collection, MAX_WRITE_ATTEMPTS
from pantry_api.exceptions import (
    ConcurrencyConflictError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    InvalidItemError,
    PreconditionFailedError,
)
from pantry_api.logging_config import get_child_logger, tracer
from pantry_api.models.inventory_item import InventoryItem, InventoryList
from pantry_api.projection import project_inventory, stored_quantity
from pantry_api.store import DocumentStore

# Create a child logger for this module
logger = get_child_logger("crud.ledger")

INVENTORY = Collection.INVENTORY.value

# Characters Cosmos DB does not accept in a document id
_FORBIDDEN_ID_CHARS = set("/\\?#")


def normalize_item_id(item_id: str) -> str:
    """
    Trim the item name and check it can be used as a document id.

    Raises:
        InvalidItemError: If the name is empty or contains /, \\, ? or #
    """
    normalized = (item_id or "").strip()
    if not normalized:
        raise InvalidItemError("Item name must not be empty.")
    bad = sorted(_FORBIDDEN_ID_CHARS.intersection(normalized))
    if bad:
        raise InvalidItemError(
            f"Item name '{normalized}' contains forbidden characters: {' '.join(bad)}"
        )
    return normalized


async def _apply_delta(
    store: DocumentStore, item_id: str, delta: int
) -> Optional[InventoryItem]:
    """
    Change an item's quantity by `delta` with an etag-guarded write.

    A result at or below zero deletes the document. Removing from an absent
    item is a no-op. On a conflicting concurrent write the item is re-read
    and the change re-applied, up to MAX_WRITE_ATTEMPTS times.
    """
    item_id = normalize_item_id(item_id)

    with tracer.start_as_current_span("ledger_apply_delta") as span:
        span.set_attribute("item.id", item_id)
        span.set_attribute("delta", delta)

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            span.set_attribute("attempts", attempt)
            current = await store.get(INVENTORY, item_id)
            if current is None:
                if delta <= 0:
                    logger.info(
                        "Item already absent; nothing to remove",
                        extra={"item_id": item_id},
                    )
                    return None
                try:
                    created = await store.add(
                        INVENTORY, {"quantity": delta}, document_id=item_id
                    )
                except DocumentAlreadyExistsError:
                    logger.warning(
                        "Inventory item created concurrently, retrying",
                        extra={"item_id": item_id, "attempt": attempt},
                    )
                    continue
                logger.info(
                    "Inventory item created",
                    extra={"item_id": item_id, "quantity": delta},
                )
                return InventoryItem(id=created.id, quantity=delta)

            try:
                quantity = stored_quantity(current) + delta
                if quantity <= 0:
                    await store.delete(INVENTORY, item_id, etag=current.etag)
                    logger.info("Inventory item removed", extra={"item_id": item_id})
                    return None

                await store.set(
                    INVENTORY,
                    item_id,
                    {**current.fields, "quantity": quantity},
                    etag=current.etag,
                )
                logger.info(
                    "Inventory quantity updated",
                    extra={"item_id": item_id, "quantity": quantity},
                )
                return InventoryItem(id=item_id, quantity=quantity)

            except (PreconditionFailedError, DocumentNotFoundError) as e:
                logger.warning(
                    "Concurrent write on inventory item, retrying",
                    extra={
                        "item_id": item_id,
                        "attempt": attempt,
                        "conflict": type(e).__name__,
                    },
                )

        span.set_attribute("error", True)
        span.set_attribute("error.type", "concurrency_conflict")
        raise ConcurrencyConflictError(
            f"Inventory item '{item_id}' kept changing; gave up after {MAX_WRITE_ATTEMPTS} attempts."
        )


async def add_one(store: DocumentStore, item_id: str) -> InventoryItem:
    """Add one unit of `item_id`, creating the item at quantity 1 if it is new."""
    return await _apply_delta(store, item_id, 1)


async def add_many(store: DocumentStore, item_id: str, count: int) -> InventoryItem:
    """Add `count` units in a single guarded write; same result as `count` add_one calls."""
    if count < 1:
        raise InvalidItemError(f"Count must be at least 1, got {count}.")
    return await _apply_delta(store, item_id, count)


async def remove_one(store: DocumentStore, item_id: str) -> Optional[InventoryItem]:
    """
    Remove one unit of `item_id`.

    Returns the item with its decremented quantity, or None when the last
    unit was removed or the item did not exist.
    """
    return await _apply_delta(store, item_id, -1)


async def get_item(store: DocumentStore, item_id: str) -> Optional[InventoryItem]:
    document = await store.get(INVENTORY, normalize_item_id(item_id))
    if document is None:
        return None
    quantity = stored_quantity(document)
    if quantity <= 0:
        return None
    return InventoryItem(id=document.id, quantity=quantity)


async def list_inventory(store: DocumentStore) -> InventoryList:
    with tracer.start_as_current_span("list_inventory") as span:
        items = project_inventory(await store.list(INVENTORY))
        span.set_attribute("items.count", len(items))
        return InventoryList(items=items)
