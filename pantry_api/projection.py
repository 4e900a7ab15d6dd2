"""
View projections.

Pure functions from a store snapshot to the lists the client renders. They
hold no state; callers re-read the collection and project again after every
write.
"""

import unicodedata
from collections import Counter
from typing import Iterable, List, Optional

from pydantic import ValidationError

from pantry_api.logging_config import get_child_logger
from pantry_api.models.document import Document
from pantry_api.models.inventory_item import InventoryItem
from pantry_api.models.product import ProductResponse, ProductStats

logger = get_child_logger("projection")


def collation_key(text: str):
    """
    Locale-style sort key, compared level by level: base letters first, then
    accents, then case with lowercase ahead of uppercase. "apple" < "Apple" <
    "eclair" < "Éclair".
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text.casefold(), text.swapcase())


def stored_quantity(document: Document) -> int:
    """Quantity recorded on a ledger document; missing or malformed reads as 0."""
    value = document.fields.get("quantity")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not value.is_integer():
        return 0
    return int(value)


def project_inventory(documents: Iterable[Document]) -> List[InventoryItem]:
    items = []
    for document in documents:
        quantity = stored_quantity(document)
        if quantity <= 0:
            logger.debug(
                "Skipping inventory document without a positive quantity",
                extra={"item_id": document.id},
            )
            continue
        items.append(InventoryItem(id=document.id, quantity=quantity))
    return sorted(items, key=lambda item: collation_key(item.id))


def project_products(
    documents: Iterable[Document], search_term: Optional[str] = None
) -> List[ProductResponse]:
    """
    Validate product documents and keep those whose name contains
    `search_term`, ignoring case. Store order is preserved.
    """
    needle = (search_term or "").casefold()
    products = []
    for document in documents:
        try:
            product = ProductResponse.from_document(document)
        except ValidationError as e:
            logger.debug(f"Pydantic validation errors: {e.errors()}")
            continue
        if needle in product.name.casefold():
            products.append(product)
    return products


def summarize_products(products: Iterable[ProductResponse]) -> ProductStats:
    stats = ProductStats()
    categories = Counter()
    for product in products:
        stats.product_count += 1
        stats.total_units += product.quantity
        stats.total_value += product.price * product.quantity
        categories[product.category.value] += 1
    stats.total_value = round(stats.total_value, 2)
    stats.categories = dict(categories)
    return stats
