from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Fields Cosmos DB adds to every stored item
SYSTEM_FIELDS = ("id", "_rid", "_self", "_etag", "_attachments", "_ts")


class Document(BaseModel):
    """
    A stored document as seen through the store interface.

    `fields` never contains the id or any store system field; `etag` is the
    version token to pass back for a conditional write.
    """

    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    etag: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_cosmos_item(cls, item: Dict[str, Any]) -> "Document":
        fields = {k: v for k, v in item.items() if k not in SYSTEM_FIELDS}
        return cls(id=item["id"], fields=fields, etag=item.get("_etag"))
