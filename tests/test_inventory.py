import pytest

from errors import NotFound, ValidationError
from schemas import HISTORY_COLLECTION, INVENTORY_COLLECTION, TAKE_INVENTORY_COLLECTION

from conftest import NOW


def _as_naive(value):
    return value.replace(tzinfo=None) if value.tzinfo else value


def test_take_inventory_overwrites_quantities_and_records_history(store, inventory, restaurant_id, make_item):
    tomatoes = make_item("Tomatoes", current_quantity=5)
    onions = make_item("Onions", current_quantity=9)

    take = inventory.take_inventory(
        restaurant_id,
        [{"id": tomatoes, "name": "Tomatoes", "quantity": 2}, {"id": onions, "name": "Onions", "quantity": 0}],
    )

    assert store.get_document_by_id(TAKE_INVENTORY_COLLECTION, take["_id"]) is not None
    assert store.get_document_by_id(INVENTORY_COLLECTION, tomatoes)["current_quantity"] == 2
    assert store.get_document_by_id(INVENTORY_COLLECTION, onions)["current_quantity"] == 0
    updated = store.get_document_by_id(INVENTORY_COLLECTION, tomatoes)["last_updated"]
    assert _as_naive(updated) == _as_naive(NOW)

    history = store.get_documents(HISTORY_COLLECTION, {"restaurant_id": restaurant_id})
    assert sorted((h["item_id"], h["amount"], h["type"]) for h in history) == sorted([
        (tomatoes, 2, "tookInventory"),
        (onions, 0, "tookInventory"),
    ])


def test_take_inventory_rejects_unknown_items(store, inventory, restaurant_id, make_item):
    tomatoes = make_item("Tomatoes", current_quantity=5)

    with pytest.raises(NotFound):
        inventory.take_inventory(
            restaurant_id,
            [{"id": tomatoes, "name": "Tomatoes", "quantity": 2}, {"id": "5f0000000000000000000000", "name": "Ghost", "quantity": 1}],
        )

    assert store.get_document_by_id(INVENTORY_COLLECTION, tomatoes)["current_quantity"] == 5
    assert store.get_documents(TAKE_INVENTORY_COLLECTION) == []


@pytest.mark.parametrize("items", [
    [],
    [{"id": "x", "name": "Tomatoes", "quantity": -1}],
    [{"id": "", "name": "Tomatoes", "quantity": 1}],
])
def test_take_inventory_validates_payload(inventory, restaurant_id, items):
    with pytest.raises(ValidationError):
        inventory.take_inventory(restaurant_id, items)


def test_apply_received_only_adds(store, inventory, restaurant_id, make_item):
    item_id = make_item(current_quantity=3.5)
    items_by_id = inventory.items_by_id(restaurant_id)

    written = inventory.apply_received(restaurant_id, [{"id": item_id, "quantity": 0}], items_by_id)

    assert written == 1
    assert store.get_document_by_id(INVENTORY_COLLECTION, item_id)["current_quantity"] == 3.5


def test_quantity_update_sets_only_quantity_and_timestamp(store, inventory, restaurant_id, make_item):
    item_id = make_item(current_quantity=3)
    item = store.get_document_by_id(INVENTORY_COLLECTION, item_id)

    changes = inventory._quantity_update(restaurant_id, item, 7, NOW)

    assert changes == {"current_quantity": 7, "last_updated": NOW}


def test_quantity_update_rejects_another_restaurants_item(store, inventory, restaurant_id, make_item):
    foreign = make_item(owner="5f1111111111111111111111")
    item = store.get_document_by_id(INVENTORY_COLLECTION, foreign)

    with pytest.raises(ValidationError, match="mismatch"):
        inventory._quantity_update(restaurant_id, item, 7, NOW)


def test_item_history_newest_first(store, inventory, restaurant_id, make_item):
    item_id = make_item(current_quantity=1)
    store.create_document(HISTORY_COLLECTION, {
        "restaurant_id": restaurant_id, "item_id": item_id, "date": NOW.replace(day=1), "amount": 4, "type": "receivedOrder",
    })
    store.create_document(HISTORY_COLLECTION, {
        "restaurant_id": restaurant_id, "item_id": item_id, "date": NOW, "amount": 2, "type": "tookInventory",
    })

    history = inventory.get_item_history(restaurant_id, item_id)

    assert [h["type"] for h in history] == ["tookInventory", "receivedOrder"]


def test_item_history_of_unknown_item(inventory, restaurant_id):
    with pytest.raises(NotFound):
        inventory.get_item_history(restaurant_id, "5f0000000000000000000000")
