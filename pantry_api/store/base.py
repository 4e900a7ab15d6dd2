from typing import Any, Dict, List, Optional, Protocol

from pantry_api.models.document import Document


class DocumentStore(Protocol):
    """
    Narrow capability interface over the hosted document database.

    Every method is scoped to a named collection. Implementations raise
    DocumentNotFoundError, DocumentAlreadyExistsError and
    PreconditionFailedError for the matching store outcomes and
    StoreUnavailableError for everything else. Only a conditional `set` and
    `delete` raise DocumentNotFoundError; `list` and `add` never do.
    """

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Return the document, or None if it does not exist."""
        ...

    async def list(self, collection: str) -> List[Document]:
        """Return every document in the collection."""
        ...

    async def set(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        etag: Optional[str] = None,
    ) -> Document:
        """
        Full overwrite of a document.

        Without an etag this creates or replaces. With an etag the document
        must exist and still carry that etag.
        """
        ...

    async def add(
        self,
        collection: str,
        fields: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Document:
        """Create a document, generating its id when none is given."""
        ...

    async def delete(
        self, collection: str, document_id: str, etag: Optional[str] = None
    ) -> None:
        """Delete a document, only if it still carries `etag` when one is given."""
        ...
