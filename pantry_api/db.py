from typing import Optional
from azure.cosmos.aio import CosmosClient, ContainerProxy
from azure.identity.aio import DefaultAzureCredential
import os

from enum import Enum

from pantry_api.logging_config import get_child_logger
from pantry_api.store import DocumentStore, CosmosDocumentStore, InMemoryDocumentStore

logger = get_child_logger("db")


class Collection(str, Enum):
    INVENTORY = "inventory"
    PRODUCTS = "products"


def read_max_write_attempts() -> int:
    """Read STORE_MAX_WRITE_ATTEMPTS; a guarded write needs at least one attempt."""
    raw = os.environ.get("STORE_MAX_WRITE_ATTEMPTS", "5")
    try:
        attempts = int(raw)
    except ValueError:
        raise ValueError(f"STORE_MAX_WRITE_ATTEMPTS must be an integer, got '{raw}'")
    if attempts < 1:
        raise ValueError(f"STORE_MAX_WRITE_ATTEMPTS must be at least 1, got {attempts}")
    return attempts

_client: Optional[CosmosClient] = None
_credential: Optional[DefaultAzureCredential] = None
_store: Optional[DocumentStore] = None

STORE_BACKEND = os.environ.get("STORE_BACKEND", "cosmos").lower()
COSMOSDB_ENDPOINT = os.environ.get("COSMOSDB_ENDPOINT")
COSMOSDB_KEY = os.environ.get("COSMOSDB_KEY")
DATABASE_NAME = os.environ.get("COSMOSDB_DATABASE")
MAX_WRITE_ATTEMPTS = read_max_write_attempts()
CONTAINERS = {
    Collection.INVENTORY.value: os.environ.get("COSMOSDB_CONTAINER_INVENTORY", "inventory"),
    Collection.PRODUCTS.value: os.environ.get("COSMOSDB_CONTAINER_PRODUCTS", "products"),
}

async def _ensure_client() -> CosmosClient:
    global _client, _credential
    if _client is None:
        if not COSMOSDB_ENDPOINT or not DATABASE_NAME:
            raise ValueError(
                "COSMOSDB_ENDPOINT and COSMOSDB_DATABASE environment variables must be set"
            )
        if COSMOSDB_KEY:
            logger.info("Creating CosmosDB client with account key")
            _client = CosmosClient(COSMOSDB_ENDPOINT, COSMOSDB_KEY)
        else:
            # Managed identity in Azure, developer credentials locally
            logger.info("Creating CosmosDB client with DefaultAzureCredential")
            _credential = DefaultAzureCredential()
            _client = CosmosClient(COSMOSDB_ENDPOINT, _credential)
    return _client

async def get_container(collection: str) -> ContainerProxy:
    container_name = CONTAINERS.get(collection)
    if not container_name:
        raise ValueError(
            f"Container '{collection}' not configured. "
            f"Valid options: {list(CONTAINERS.keys())}"
        )

    client = await _ensure_client()
    database = client.get_database_client(DATABASE_NAME)
    return database.get_container_client(container_name)


async def get_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide document store."""
    global _store
    if _store is None:
        if STORE_BACKEND == "memory":
            logger.warning("Using in-memory document store; data is not persisted")
            _store = InMemoryDocumentStore()
        elif STORE_BACKEND == "cosmos":
            _store = CosmosDocumentStore(get_container)
        else:
            raise ValueError(
                f"Unknown STORE_BACKEND '{STORE_BACKEND}'. Valid options: cosmos, memory"
            )
    return _store


async def close_store() -> None:
    """Release the Cosmos client and credential, if they were created."""
    global _client, _credential, _store
    if _client is not None:
        await _client.close()
        _client = None
    if _credential is not None:
        await _credential.close()
        _credential = None
    _store = None
