from typing import Optional
from fastapi import APIRouter, Body, HTTPException, Path, Query, Response, status, Depends
from pantry_api.models.product import (
    ProductCreate,
    ProductList,
    ProductResponse,
    ProductStats,
    ProductUpdate,
)
from pantry_api.crud.product_crud import (
    get_product_by_id,
    get_product_stats,
    list_products,
    create_product,
    delete_product,
    update_product
)
from pantry_api.db import get_store
from pantry_api.store import DocumentStore

from pantry_api.exceptions import ProductNotFoundError

from pantry_api.logging_config import tracer, get_child_logger

# Create a child logger for this module
logger = get_child_logger("routes.product")

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=ProductList)
async def get_products(
    search: Optional[str] = Query(None, title="Case-insensitive text to look for in product names"),
    store: DocumentStore = Depends(get_store),
):
    with tracer.start_as_current_span("api_get_products") as span:
        span.set_attribute("has_search", search is not None)

        logger.info("Handling GET /products request", extra={"search": search})

        result = await list_products(store, search=search)
        span.set_attribute("products.count", len(result.items))
        return result


@router.get("/stats", response_model=ProductStats)
async def get_products_stats(store: DocumentStore = Depends(get_store)):
    return await get_product_stats(store)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def add_new_product(
    product: ProductCreate = Body(..., description="Product information to create"),
    store: DocumentStore = Depends(get_store),
):
    return await create_product(store, product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_product(
    product_id: str = Path(..., title="The ID of the product to delete"),
    store: DocumentStore = Depends(get_store),
):
    deleted = await delete_product(store, product_id)
    if not deleted:
        logger.info(
            "DELETE on a product that does not exist", extra={"product_id": product_id}
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_existing_product(
    updated_product: ProductUpdate,
    product_id: str = Path(..., title="The ID of the product to update"),
    store: DocumentStore = Depends(get_store),
):
    result = await update_product(store, product_id, updated_product)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID '{product_id}' not found",
        )
    return result


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str = Path(..., title="The ID of the product to retrieve"),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await get_product_by_id(store, product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
