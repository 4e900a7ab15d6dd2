from typing import Optional

from pydantic import ValidationError

from pantry_api.db import Collection, MAX_WRITE_ATTEMPTS
from pantry_api.exceptions import (
    ConcurrencyConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
    ProductNotFoundError,
)
from pantry_api.logging_config import get_child_logger, mark_span_error, tracer
from pantry_api.models.product import (
    ProductCreate,
    ProductList,
    ProductResponse,
    ProductStats,
    ProductUpdate,
)
from pantry_api.projection import project_products, summarize_products
from pantry_api.store import DocumentStore

# Create a child logger for this module
logger = get_child_logger("crud.product")

PRODUCTS = Collection.PRODUCTS.value


async def list_products(
    store: DocumentStore, search: Optional[str] = None
) -> ProductList:
    """
    Retrieve every product whose name contains `search` (case-insensitive).
    """
    with tracer.start_as_current_span("list_products") as span:
        span.set_attribute("has_search", bool(search))

        logger.info("Listing products", extra={"search": search})
        items = project_products(await store.list(PRODUCTS), search)

        span.set_attribute("products.count", len(items))
        logger.info(f"Retrieved {len(items)} products", extra={"count": len(items)})
        return ProductList(items=items)


async def get_product_stats(store: DocumentStore) -> ProductStats:
    with tracer.start_as_current_span("get_product_stats"):
        return summarize_products(project_products(await store.list(PRODUCTS)))


async def create_product(
    store: DocumentStore, product: ProductCreate
) -> ProductResponse:
    """
    Create a new product in the database.

    Args:
        store: Document store
        product: Validated product fields

    Returns:
        Newly created product with its store-generated id

    Raises:
        StoreUnavailableError: If the store cannot complete the write
    """
    with tracer.start_as_current_span("create_product") as span:
        fields = product.to_document_fields()
        span.set_attribute("product.category", fields["category"])
        span.set_attribute("product.name", fields["name"])

        document = await store.add(PRODUCTS, fields)

        span.set_attribute("product.id", document.id)
        logger.info(
            "Product created successfully",
            extra={"product_id": document.id, "category": fields["category"]},
        )
        return ProductResponse.from_document(document)


async def get_product_by_id(store: DocumentStore, product_id: str) -> ProductResponse:
    """
    Retrieve a product by its ID.

    Raises:
        ProductNotFoundError: If the product doesn't exist
        StoreUnavailableError: If the store cannot complete the read
    """
    with tracer.start_as_current_span("get_product_by_id") as span:
        span.set_attribute("product.id", product_id)

        document = await store.get(PRODUCTS, product_id)
        if document is None:
            logger.warning("Product not found", extra={"product_id": product_id})
            raise ProductNotFoundError(f"Product with ID '{product_id}' not found")
        try:
            return ProductResponse.from_document(document)
        except ValidationError as e:
            # Listings skip such documents, so a direct read does too
            mark_span_error(span, e)
            logger.error(
                "Stored product failed validation",
                extra={"product_id": product_id, "errors": e.errors()},
            )
            raise ProductNotFoundError(
                f"Product with ID '{product_id}' not found"
            ) from e


async def update_product(
    store: DocumentStore, product_id: str, product: ProductUpdate
) -> Optional[ProductResponse]:
    """
    Replace every field of an existing product.

    Args:
        store: Document store
        product_id: ID of the product to overwrite
        product: The complete new field set

    Returns:
        The updated product, or None if no such product exists. The write is
        conditional on the version just read, so a product deleted in the
        meantime is not recreated.

    Raises:
        ConcurrencyConflictError: If the product kept changing under us
        StoreUnavailableError: If the store cannot complete the write
    """
    with tracer.start_as_current_span("update_product") as span:
        span.set_attribute("product.id", product_id)
        fields = product.to_document_fields()

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            current = await store.get(PRODUCTS, product_id)
            if current is None:
                logger.info(
                    "Product not found; nothing to update",
                    extra={"product_id": product_id},
                )
                return None
            try:
                document = await store.set(
                    PRODUCTS, product_id, fields, etag=current.etag
                )
            except (PreconditionFailedError, DocumentNotFoundError):
                logger.warning(
                    "Concurrent write on product, retrying",
                    extra={"product_id": product_id, "attempt": attempt},
                )
                continue

            logger.info("Product updated", extra={"product_id": product_id})
            return ProductResponse.from_document(document)

        span.set_attribute("error", True)
        span.set_attribute("error.type", "concurrency_conflict")
        raise ConcurrencyConflictError(
            f"Product with ID '{product_id}' kept changing; gave up after {MAX_WRITE_ATTEMPTS} attempts."
        )


async def delete_product(store: DocumentStore, product_id: str) -> bool:
    """
    Delete a product whatever its quantity.

    Returns:
        True if a document was deleted, False if none existed
    """
    with tracer.start_as_current_span("delete_product") as span:
        span.set_attribute("product.id", product_id)
        try:
            await store.delete(PRODUCTS, product_id)
        except DocumentNotFoundError:
            logger.info("Product already absent", extra={"product_id": product_id})
            return False
        logger.info("Product deleted", extra={"product_id": product_id})
        return True
