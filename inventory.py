"""
Inventory reconciliation.

Quantity changes and their audit trail: every quantity change appends exactly
one history record per affected item, typed by its cause. Deliveries add the
received amount to stock; inventory counts overwrite it.
"""
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List

from database import DocumentStore
from errors import NotFound
from schemas import (
    HISTORY_COLLECTION,
    INVENTORY_COLLECTION,
    TAKE_INVENTORY_COLLECTION,
    InventoryHistoryRecord,
    TakeInventory,
)
from validation import check_tenant, validate_history_record, validate_inventory_item, validate_take_inventory

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sum_by_id(entries: Iterable[dict]) -> "OrderedDict[str, float]":
    totals: "OrderedDict[str, float]" = OrderedDict()
    for entry in entries:
        totals[entry["id"]] = totals.get(entry["id"], 0) + entry["quantity"]
    return totals


class InventoryService:
    def __init__(self, store: DocumentStore, now: Callable[[], datetime] = utcnow):
        self.store = store
        self.now = now

    def items_by_id(self, restaurant_id: str) -> Dict[str, dict]:
        items = self.store.get_documents(INVENTORY_COLLECTION, {"restaurant_id": restaurant_id})
        return {item["_id"]: item for item in items}

    @staticmethod
    def resolve(entries: Iterable[dict], items_by_id: Dict[str, dict]) -> None:
        """Fail before any write if an entry points at an unknown item."""
        for entry in entries:
            if entry["id"] not in items_by_id:
                raise NotFound(f"Inventory item {entry['id']} not found")

    def _history(self, restaurant_id: str, item_id: str, amount: float, kind: str, when: datetime) -> InventoryHistoryRecord:
        record = InventoryHistoryRecord(
            restaurant_id=restaurant_id, item_id=item_id, date=when, amount=amount, type=kind
        )
        validate_history_record(restaurant_id, item_id, record.model_dump())
        return record

    def _quantity_update(self, restaurant_id: str, item: dict, quantity: float, when: datetime) -> dict:
        check_tenant(restaurant_id, item)
        changes = {"current_quantity": quantity, "last_updated": when}
        validate_inventory_item(restaurant_id, changes, partial=True)
        return changes

    def apply_received(self, restaurant_id: str, received_items: List[dict], items_by_id: Dict[str, dict]) -> int:
        """
        Add delivered quantities to stock.

        Two batches: quantities first, then one `receivedOrder` history record
        per received entry. `items_by_id` must already resolve every entry.
        """
        self.resolve(received_items, items_by_id)
        now = self.now()

        quantities = self.store.batch()
        for item_id, amount in sum_by_id(received_items).items():
            current = items_by_id[item_id].get("current_quantity") or 0
            changes = self._quantity_update(restaurant_id, items_by_id[item_id], current + amount, now)
            quantities.update(INVENTORY_COLLECTION, item_id, changes)
        quantities.commit()

        history = self.store.batch()
        for entry in received_items:
            history.create(
                HISTORY_COLLECTION,
                self._history(restaurant_id, entry["id"], entry["quantity"], "receivedOrder", now),
            )
        written = history.commit()
        logger.info(f"Applied {len(received_items)} received items to inventory of restaurant {restaurant_id}")
        return written

    def take_inventory(self, restaurant_id: str, counted_items: List[dict]) -> dict:
        """Overwrite stock with counted quantities, recording the count and its history in one batch."""
        validate_take_inventory(restaurant_id, counted_items)
        items_by_id = self.items_by_id(restaurant_id)
        self.resolve(counted_items, items_by_id)
        now = self.now()

        take = TakeInventory(restaurant_id=restaurant_id, timestamp=now, items=counted_items)
        batch = self.store.batch()
        take_id = batch.create(TAKE_INVENTORY_COLLECTION, take)
        for entry in counted_items:
            changes = self._quantity_update(restaurant_id, items_by_id[entry["id"]], entry["quantity"], now)
            batch.update(INVENTORY_COLLECTION, entry["id"], changes)
            batch.create(HISTORY_COLLECTION, self._history(restaurant_id, entry["id"], entry["quantity"], "tookInventory", now))
        batch.commit()
        logger.info(f"Took inventory {take_id} of {len(counted_items)} items for restaurant {restaurant_id}")
        return {"_id": take_id, **take.model_dump()}

    def get_item_history(self, restaurant_id: str, item_id: str) -> List[dict]:
        if not self.store.get_document_by_id(INVENTORY_COLLECTION, item_id, {"restaurant_id": restaurant_id}):
            raise NotFound("Inventory item not found")
        return self.store.get_documents(
            HISTORY_COLLECTION,
            {"restaurant_id": restaurant_id, "item_id": item_id},
            sort=[("date", -1)],
        )
