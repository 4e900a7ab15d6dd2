import pytest

from pantry_api.models.document import Document
from pantry_api.models.product import ProductCategory
from pantry_api.projection import (
    collation_key,
    project_inventory,
    project_products,
    stored_quantity,
    summarize_products,
)


def _doc(document_id, **fields):
    return Document(id=document_id, fields=fields, etag='"1"')


def _product(document_id, name, category="Dairy Products", price=1.0, quantity=1):
    return _doc(
        document_id,
        name=name,
        category=category,
        price=price,
        quantity=quantity,
        unit="Each (ea)",
    )


def test_inventory_sorted_ignoring_case_and_accents():
    documents = [
        _doc("Zucchini", quantity=1),
        _doc("eggs", quantity=12),
        _doc("éclair", quantity=2),
        _doc("apple", quantity=3),
    ]

    items = project_inventory(documents)

    assert [item.id for item in items] == ["apple", "éclair", "eggs", "Zucchini"]
    assert [item.quantity for item in items] == [3, 2, 12, 1]


def test_inventory_projection_drops_documents_without_stock():
    documents = [_doc("a", quantity=0), _doc("b"), _doc("c", quantity=2)]

    assert [item.id for item in project_inventory(documents)] == ["c"]


def test_inventory_projection_is_recomputed_not_cached():
    documents = [_doc("a", quantity=1)]
    first = project_inventory(documents)
    documents.append(_doc("b", quantity=1))

    assert len(first) == 1
    assert len(project_inventory(documents)) == 2


def test_collation_key_puts_accent_ties_before_case_ties():
    names = ["Zebra", "Éclair", "Apple", "cherry", "eclair", "apple", "banana"]

    assert sorted(names, key=collation_key) == [
        "apple", "Apple", "banana", "cherry", "eclair", "Éclair", "Zebra",
    ]


def test_collation_key_orders_lowercase_first():
    assert sorted(["Apple", "apple"], key=collation_key) == ["apple", "Apple"]


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3), (3.0, 3), (2.5, 0), ("3", 0), (True, 0), (None, 0), (float("nan"), 0)],
)
def test_stored_quantity(value, expected):
    assert stored_quantity(_doc("x", quantity=value)) == expected


def test_products_filtered_by_name_case_insensitively_in_store_order():
    documents = [
        _product("1", "Whole Milk"),
        _product("2", "Bread", category="Bakery Products"),
        _product("3", "milk chocolate", category="Snacks"),
    ]

    products = project_products(documents, "MILK")

    assert [p.id for p in products] == ["1", "3"]


def test_products_without_search_keep_everything():
    documents = [_product("2", "Bread"), _product("1", "Apple juice")]

    assert [p.id for p in project_products(documents)] == ["2", "1"]
    assert [p.id for p in project_products(documents, "")] == ["2", "1"]


def test_invalid_product_documents_are_skipped():
    documents = [
        _product("1", "Milk"),
        _product("2", "Robot", category="Toys"),
        _doc("3", name="No price", category="Snacks", quantity=1, unit="Pack"),
    ]

    assert [p.id for p in project_products(documents)] == ["1"]


def test_summarize_products():
    products = project_products(
        [
            _product("1", "Milk", price=2.5, quantity=3),
            _product("2", "Cheese", price=4.0, quantity=1),
            _product("3", "Bread", category="Bakery Products", price=1.2, quantity=2),
        ]
    )

    stats = summarize_products(products)

    assert stats.product_count == 3
    assert stats.total_units == 6
    assert stats.total_value == pytest.approx(13.9)
    assert stats.categories == {
        ProductCategory.DAIRY_PRODUCTS.value: 2,
        ProductCategory.BAKERY_PRODUCTS.value: 1,
    }


def test_summarize_empty_catalogue():
    stats = summarize_products([])

    assert stats.product_count == 0
    assert stats.total_value == 0
    assert stats.categories == {}
