from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import DocumentStore
from inventory import InventoryService
from main import app, get_inventory_monitor, get_store
from monitoring import InventoryMonitor
from notifications import EmailService
from orders import OrderService
from schemas import (
    INVENTORY_COLLECTION,
    ORDER_COLLECTION,
    RESTAURANT_COLLECTION,
    SUPPLIER_COLLECTION,
    ContactMethod,
    InventoryItem,
    Order,
    OrderItem,
    Restaurant,
    Supplier,
)

NOW = datetime(2026, 10, 17, 14, 0, tzinfo=timezone.utc)


def clock() -> datetime:
    return NOW


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore(mongomock.MongoClient()["backoffice_test"])


@pytest.fixture
def emails(store) -> EmailService:
    return EmailService(store, cc=["cocina@thewindow.es"])


@pytest.fixture
def inventory(store) -> InventoryService:
    return InventoryService(store, now=clock)


@pytest.fixture
def orders(store, emails, inventory) -> OrderService:
    return OrderService(store, emails, inventory, now=clock)


@pytest.fixture
def monitor(store, emails) -> InventoryMonitor:
    return InventoryMonitor(store, emails, "gerencia@thewindow.es", now=clock)


@pytest.fixture
def restaurant_id(store) -> str:
    return store.create_document(RESTAURANT_COLLECTION, Restaurant(name="The Window", address="Calle Mayor 1, Madrid"))


@pytest.fixture
def supplier_id(store, restaurant_id) -> str:
    supplier = Supplier(
        restaurant_id=restaurant_id,
        name="Frutas Garcia",
        dispatch_time=1,
        contact_method=ContactMethod(type="email", emails=["pedidos@frutasgarcia.es"]),
    )
    return store.create_document(SUPPLIER_COLLECTION, supplier)


@pytest.fixture
def make_item(store, restaurant_id):
    def _make(name="Tomatoes", current_quantity=5, days_ago=None, update_frequency=None, owner=None):
        item = InventoryItem(
            restaurant_id=owner or restaurant_id,
            name=name,
            category="Fruits and Vegetables",
            unit="kg",
            current_quantity=current_quantity,
            update_frequency=update_frequency,
            last_updated=NOW - timedelta(days=days_ago) if days_ago is not None else None,
        )
        return store.create_document(INVENTORY_COLLECTION, item)
    return _make


@pytest.fixture
def make_order(store, restaurant_id, supplier_id):
    def _make(items, status="pending"):
        order = Order(
            restaurant_id=restaurant_id,
            supplier_id=supplier_id,
            supplier_name="Frutas Garcia",
            items=[OrderItem(**item) for item in items],
            status=status,
            expected_delivery="2026-10-20",
        )
        return store.create_document(ORDER_COLLECTION, order)
    return _make


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_inventory_monitor] = lambda: InventoryMonitor(
        store, EmailService(store), "gerencia@thewindow.es", now=clock
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
