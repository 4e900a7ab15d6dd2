import pytest

from pantry_api.exceptions import (
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    PreconditionFailedError,
)


@pytest.mark.asyncio
async def test_set_without_etag_creates_then_replaces(store):
    first = await store.set("inventory", "apple", {"quantity": 1})
    second = await store.set("inventory", "apple", {"quantity": 2})

    assert first.etag != second.etag
    assert (await store.get("inventory", "apple")).fields == {"quantity": 2}


@pytest.mark.asyncio
async def test_conditional_set(store):
    original = await store.set("inventory", "apple", {"quantity": 1})
    await store.set("inventory", "apple", {"quantity": 5}, etag=original.etag)

    with pytest.raises(PreconditionFailedError):
        await store.set("inventory", "apple", {"quantity": 9}, etag=original.etag)
    with pytest.raises(DocumentNotFoundError):
        await store.set("inventory", "pear", {"quantity": 1}, etag=original.etag)
    assert (await store.get("inventory", "apple")).fields == {"quantity": 5}


@pytest.mark.asyncio
async def test_add_generates_ids_and_refuses_duplicates(store):
    generated = await store.add("products", {"name": "Milk"})
    assert generated.id

    await store.add("inventory", {"quantity": 1}, document_id="apple")
    with pytest.raises(DocumentAlreadyExistsError):
        await store.add("inventory", {"quantity": 1}, document_id="apple")


@pytest.mark.asyncio
async def test_delete(store):
    created = await store.set("inventory", "apple", {"quantity": 1})
    await store.set("inventory", "apple", {"quantity": 2})

    with pytest.raises(PreconditionFailedError):
        await store.delete("inventory", "apple", etag=created.etag)
    await store.delete("inventory", "apple")
    with pytest.raises(DocumentNotFoundError):
        await store.delete("inventory", "apple")
    assert await store.get("inventory", "apple") is None


@pytest.mark.asyncio
async def test_collections_are_isolated(store):
    await store.set("inventory", "x", {"quantity": 1})

    assert await store.get("products", "x") is None
    assert await store.list("products") == []


@pytest.mark.asyncio
async def test_returned_documents_are_copies(store):
    await store.set("inventory", "apple", {"quantity": 1, "tags": ["red"]})

    document = await store.get("inventory", "apple")
    document.fields["tags"].append("green")
    document.fields["quantity"] = 99

    assert (await store.get("inventory", "apple")).fields == {"quantity": 1, "tags": ["red"]}


@pytest.mark.asyncio
async def test_list_keeps_insertion_order(store):
    for name in ["c", "a", "b"]:
        await store.set("inventory", name, {"quantity": 1})

    assert [d.id for d in await store.list("inventory")] == ["c", "a", "b"]
