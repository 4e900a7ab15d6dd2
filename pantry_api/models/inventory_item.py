from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class InventoryItem(BaseModel):
    """
    A pantry item tracked by the quantity ledger. The id is the item name.
    """

    id: str
    quantity: int = Field(gt=0)

    model_config = ConfigDict(extra="ignore")


class InventoryList(BaseModel):
    """
    Response model for the inventory listing, sorted by item name.
    """

    items: List[InventoryItem]

    model_config = ConfigDict(extra="forbid")


class InventoryUpdate(BaseModel):
    """
    Result of an add/remove intent: the item's new state (None once removed)
    and the inventory re-read after the write.
    """

    item: Optional[InventoryItem] = None
    inventory: List[InventoryItem]

    model_config = ConfigDict(extra="forbid")
