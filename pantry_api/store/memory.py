import copy
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional

from pantry_api.exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
)
from pantry_api.models.document import Document


class InMemoryDocumentStore:
    """
    Process-local DocumentStore with the same etag semantics as Cosmos DB.

    Used with STORE_BACKEND=memory for local runs and by the test suite.
    Insertion order is kept, so list() returns documents oldest first.
    """

    def __init__(self):
        # collection -> id -> (fields, etag)
        self._collections: Dict[str, Dict[str, tuple]] = defaultdict(dict)

    def _document(self, document_id: str, entry: tuple) -> Document:
        fields, etag = entry
        return Document(id=document_id, fields=copy.deepcopy(fields), etag=etag)

    def _write(self, collection: str, document_id: str, fields: Dict[str, Any]) -> Document:
        entry = (copy.deepcopy(fields), f'"{uuid.uuid4().hex}"')
        self._collections[collection][document_id] = entry
        return self._document(document_id, entry)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        entry = self._collections[collection].get(document_id)
        if entry is None:
            return None
        return self._document(document_id, entry)

    async def list(self, collection: str) -> List[Document]:
        return [
            self._document(document_id, entry)
            for document_id, entry in self._collections[collection].items()
        ]

    async def set(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        etag: Optional[str] = None,
    ) -> Document:
        if etag is not None:
            entry = self._collections[collection].get(document_id)
            if entry is None:
                raise DocumentNotFoundError(
                    f"Document '{document_id}' not found in '{collection}'"
                )
            if entry[1] != etag:
                raise PreconditionFailedError(
                    f"Document '{document_id}' in '{collection}' has been modified"
                )
        return self._write(collection, document_id, fields)

    async def add(
        self,
        collection: str,
        fields: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        document_id = document_id or str(uuid.uuid4())
        if document_id in self._collections[collection]:
            raise DocumentAlreadyExistsError(
                f"Document '{document_id}' already exists in '{collection}'"
            )
        return self._write(collection, document_id, fields)

    async def delete(
        self, collection: str, document_id: str, etag: Optional[str] = None
    ) -> None:
        entry = self._collections[collection].get(document_id)
        if entry is None:
            raise DocumentNotFoundError(
                f"Document '{document_id}' not found in '{collection}'"
            )
        if etag is not None and entry[1] != etag:
            raise PreconditionFailedError(
                f"Document '{document_id}' in '{collection}' has been modified"
            )
        del self._collections[collection][document_id]
