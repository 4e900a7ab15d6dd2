import pytest
from azure.cosmos.exceptions import CosmosHttpResponseError

from pantry_api.exceptions import StoreUnavailableError
from pantry_api.store import CosmosDocumentStore, InMemoryDocumentStore


class RivalWriterStore(InMemoryDocumentStore):
    """
    In-memory store where another client bumps the target document's
    quantity by one right before each of our next `rival_writes` writes.
    """

    def __init__(self, rival_writes=1, rival=None):
        super().__init__()
        self.rival_writes = rival_writes
        self._rival = rival or self._bump

    async def _bump(self, collection, document_id):
        current = await InMemoryDocumentStore.get(self, collection, document_id)
        quantity = current.fields["quantity"] + 1 if current else 1
        await InMemoryDocumentStore.set(self, collection, document_id, {"quantity": quantity})

    async def _interfere(self, collection, document_id):
        if self.rival_writes > 0:
            self.rival_writes -= 1
            await self._rival(collection, document_id)

    async def set(self, collection, document_id, fields, etag=None):
        await self._interfere(collection, document_id)
        return await super().set(collection, document_id, fields, etag)

    async def add(self, collection, fields, document_id=None):
        if document_id is not None:
            await self._interfere(collection, document_id)
        return await super().add(collection, fields, document_id)

    async def delete(self, collection, document_id, etag=None):
        await self._interfere(collection, document_id)
        return await super().delete(collection, document_id, etag)


class UnavailableStore:
    """Store whose every call fails the way an unreachable database does."""

    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise StoreUnavailableError(
            "Cosmos DB error during read: Status Code 503, Message: unavailable",
            original_exception=ConnectionError("unavailable"),
        )

    get = list = set = add = delete = _fail




def stored_item(body, etag='"e1"'):
    """A Cosmos DB item as the service returns it, system fields included."""
    return {**body, "_etag": etag, "_rid": "rid==", "_self": "dbs/x/", "_attachments": "attachments/", "_ts": 1700000000}


class MockContainer:
    """Records calls and answers like azure.cosmos.aio.ContainerProxy."""

    def __init__(self, items=None, error=None):
        self.items = {item["id"]: item for item in (items or [])}
        self.error = error
        self.calls = []

    def _check(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    async def read_item(self, item, partition_key):
        self._check("read_item", item=item, partition_key=partition_key)
        if item not in self.items:
            raise CosmosHttpResponseError(status_code=404, message="Resource Not Found")
        return self.items[item]

    def read_all_items(self):
        async def pages():
            self._check("read_all_items")
            for item in list(self.items.values()):
                yield item
        return pages()

    async def upsert_item(self, body):
        self._check("upsert_item", body=body)
        self.items[body["id"]] = stored_item(body)
        return self.items[body["id"]]

    async def replace_item(self, item, body, etag=None, match_condition=None):
        self._check("replace_item", item=item, body=body, etag=etag, match_condition=match_condition)
        self.items[item] = stored_item(body, etag='"e2"')
        return self.items[item]

    async def create_item(self, body):
        self._check("create_item", body=body)
        self.items[body["id"]] = stored_item(body)
        return self.items[body["id"]]

    async def delete_item(self, item, partition_key, **kwargs):
        self._check("delete_item", item=item, partition_key=partition_key, **kwargs)
        self.items.pop(item, None)


def cosmos_store_for(container):
    requested = []

    async def factory(collection):
        requested.append(collection)
        return container

    store = CosmosDocumentStore(factory)
    store.requested = requested
    return store


def missing_container_error():
    """The 404 Cosmos DB returns when the container or database does not exist."""
    error = CosmosHttpResponseError(status_code=404, message="Owner resource does not exist")
    error.sub_status = 1003
    return error


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def unavailable_store():
    return UnavailableStore()
