import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from azure.core import MatchConditions
from azure.cosmos.aio import ContainerProxy
from azure.cosmos.exceptions import CosmosHttpResponseError

from pantry_api.exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreUnavailableError,
)
from pantry_api.logging_config import get_child_logger, mark_span_error, tracer
from pantry_api.models.document import Document

logger = get_child_logger("store.cosmos")

# x-ms-substatus Cosmos DB sends with a 404 when the container or database is missing
OWNER_RESOURCE_NOT_EXISTS = 1003


def _owner_missing(error: CosmosHttpResponseError) -> bool:
    if getattr(error, "sub_status", None) == OWNER_RESOURCE_NOT_EXISTS:
        return True
    return "Owner resource does not exist" in str(error.message or "")


class CosmosDocumentStore:
    """
    DocumentStore backed by Azure Cosmos DB.

    Each collection maps to one container whose partition key path is `/id`,
    so every point operation uses the document id as its partition key.
    """

    def __init__(self, container_factory: Callable[[str], Awaitable[ContainerProxy]]):
        self._container_factory = container_factory

    def _translate(
        self,
        span,
        error: Exception,
        operation: str,
        collection: str,
        document_id=None,
        document_level: bool = True,
    ) -> Exception:
        """
        Map a Cosmos or transport failure onto the store error taxonomy.

        Only point operations on an existing document (`document_level`) can
        report a missing document. A 404 anywhere else, or one saying the
        owning container or database does not exist, means the store itself
        is misconfigured and is reported as unavailable.
        """
        if isinstance(error, CosmosHttpResponseError):
            target = f"Document '{document_id}' in '{collection}'"
            if error.status_code == 404 and document_level and not _owner_missing(error):
                return DocumentNotFoundError(f"{target} not found")
            if error.status_code == 409:
                return DocumentAlreadyExistsError(f"{target} already exists")
            if error.status_code == 412:
                return PreconditionFailedError(f"{target} has been modified (ETag mismatch)")

            mark_span_error(span, error, error.status_code)
            details = {
                "status_code": error.status_code,
                "error_message": error.message,
                "collection": collection,
                "document_id": document_id,
            }
            if error.status_code in (401, 403):
                logger.warning("Cosmos DB authentication error", extra=details)
            else:
                logger.error(
                    f"Cosmos DB error during {operation}", extra=details, exc_info=True
                )
            return StoreUnavailableError(
                f"Cosmos DB error during {operation}: Status Code {error.status_code}, Message: {error.message}",
                original_exception=error,
            )

        mark_span_error(span, error)
        logger.error(
            f"Unexpected error during {operation}",
            extra={
                "error_type": type(error).__name__,
                "collection": collection,
                "document_id": document_id,
            },
            exc_info=True,
        )
        return StoreUnavailableError(
            "An unexpected error occurred during database operation.",
            original_exception=error,
        )

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        with tracer.start_as_current_span("store_get") as span:
            span.set_attribute("collection", collection)
            span.set_attribute("document.id", document_id)
            try:
                container = await self._container_factory(collection)
                item = await container.read_item(item=document_id, partition_key=document_id)
                return Document.from_cosmos_item(item)
            except Exception as e:
                error = self._translate(span, e, "read", collection, document_id)
                if isinstance(error, DocumentNotFoundError):
                    return None
                raise error from e

    async def list(self, collection: str) -> List[Document]:
        with tracer.start_as_current_span("store_list") as span:
            span.set_attribute("collection", collection)
            try:
                container = await self._container_factory(collection)
                items = [item async for item in container.read_all_items()]
            except Exception as e:
                raise self._translate(
                    span, e, "listing", collection, document_level=False
                ) from e

            span.set_attribute("documents.count", len(items))
            logger.debug(
                f"Read {len(items)} documents",
                extra={"collection": collection, "count": len(items)},
            )
            return [Document.from_cosmos_item(item) for item in items]

    async def set(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        etag: Optional[str] = None,
    ) -> Document:
        with tracer.start_as_current_span("store_set") as span:
            span.set_attribute("collection", collection)
            span.set_attribute("document.id", document_id)
            span.set_attribute("conditional", etag is not None)

            body = {**fields, "id": document_id}
            try:
                container = await self._container_factory(collection)
                if etag is None:
                    result = await container.upsert_item(body=body)
                else:
                    result = await container.replace_item(
                        item=document_id,
                        body=body,
                        etag=etag,
                        match_condition=MatchConditions.IfNotModified,
                    )
                return Document.from_cosmos_item(result)
            except Exception as e:
                # An upsert has no document to miss
                raise self._translate(
                    span, e, "write", collection, document_id,
                    document_level=etag is not None,
                ) from e

    async def add(
        self,
        collection: str,
        fields: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        document_id = document_id or str(uuid.uuid4())
        with tracer.start_as_current_span("store_add") as span:
            span.set_attribute("collection", collection)
            span.set_attribute("document.id", document_id)
            try:
                container = await self._container_factory(collection)
                result = await container.create_item(body={**fields, "id": document_id})
                return Document.from_cosmos_item(result)
            except Exception as e:
                raise self._translate(
                    span, e, "creation", collection, document_id, document_level=False
                ) from e

    async def delete(
        self, collection: str, document_id: str, etag: Optional[str] = None
    ) -> None:
        with tracer.start_as_current_span("store_delete") as span:
            span.set_attribute("collection", collection)
            span.set_attribute("document.id", document_id)
            span.set_attribute("conditional", etag is not None)

            conditions = {}
            if etag is not None:
                conditions = {"etag": etag, "match_condition": MatchConditions.IfNotModified}
            try:
                container = await self._container_factory(collection)
                await container.delete_item(
                    item=document_id, partition_key=document_id, **conditions
                )
            except Exception as e:
                raise self._translate(span, e, "deletion", collection, document_id) from e
