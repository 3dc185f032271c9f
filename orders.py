"""
Purchase order lifecycle.

    pending -> sent -> confirmed -> delivered
    any non-terminal state -> cancelled

`delivered` is only reachable through record_order_delivery. Every status
write is conditioned on the status read just before it, so two callers racing
on the same order cannot both win.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from database import DocumentStore
from errors import InvalidState, NotFound
from inventory import InventoryService, sum_by_id, utcnow
from notifications import EmailService, supplier_emails
from schemas import (
    ORDER_COLLECTION,
    RESTAURANT_COLLECTION,
    SUPPLIER_COLLECTION,
    Order,
)
from validation import (
    require_restaurant_id,
    validate_order,
    validate_order_status,
    validate_received_items,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("delivered", "cancelled")

PROGRESSION = ("pending", "sent", "confirmed", "delivered")


def can_transition(current: str, target: str) -> bool:
    """Forward moves along PROGRESSION, or cancellation, from a non-terminal status."""
    if current in TERMINAL_STATUSES or current not in PROGRESSION:
        return False
    if target == "cancelled":
        return True
    if target not in PROGRESSION:
        return False
    # re-applying the current status is a no-op
    return PROGRESSION.index(target) >= PROGRESSION.index(current)


class OrderService:
    def __init__(
        self,
        store: DocumentStore,
        emails: EmailService,
        inventory: InventoryService,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.emails = emails
        self.inventory = inventory
        self.now = now

    # Reads

    def get_order(self, restaurant_id: str, order_id: str) -> dict:
        require_restaurant_id(restaurant_id)
        order = self.store.get_document_by_id(ORDER_COLLECTION, order_id, {"restaurant_id": restaurant_id})
        if not order:
            raise NotFound("Order not found")
        return order

    def get_orders(self, restaurant_id: str, status: Optional[str] = None) -> List[dict]:
        require_restaurant_id(restaurant_id)
        filt = {"restaurant_id": restaurant_id}
        if status:
            validate_order_status(status)
            filt["status"] = status
        return self.store.get_documents(ORDER_COLLECTION, filt, sort=[("created_at", -1)])

    # Writes

    def create_order(self, restaurant_id: str, order: Order) -> dict:
        payload = order.model_dump(exclude_none=True)
        payload["status"] = "pending"
        for item in payload["items"]:
            item["received_quantity"] = 0
        validate_order(restaurant_id, payload)
        order_id = self.store.create_document(ORDER_COLLECTION, payload)
        logger.info(f"Created order {order_id} for supplier {payload['supplier_id']}")
        return self.get_order(restaurant_id, order_id)

    def _write_status(self, order: dict, changes: dict) -> None:
        ok = self.store.update_document(
            ORDER_COLLECTION, order["_id"], changes, expected={"status": order["status"]}
        )
        if not ok:
            raise InvalidState(f"Order {order['_id']} was modified concurrently, please retry")
        logger.info(f"Order {order['_id']}: {order['status']} -> {changes['status']}")

    def send_order(self, restaurant_id: str, order_id: str) -> dict:
        order = self.get_order(restaurant_id, order_id)
        if order["status"] != "pending":
            raise InvalidState("Only pending orders can be sent")

        restaurant = self.store.get_document_by_id(RESTAURANT_COLLECTION, restaurant_id)
        if not restaurant:
            raise NotFound("Restaurant not found")
        supplier = self.store.get_document_by_id(
            SUPPLIER_COLLECTION, order["supplier_id"], {"restaurant_id": restaurant_id}
        )
        if not supplier:
            raise NotFound("Supplier not found")
        supplier_emails(supplier)

        # The email is queued before the status write; a failed write leaves it queued.
        self.emails.create_order_email(restaurant, order, supplier, self.now().date())
        try:
            self._write_status(order, {"status": "sent"})
        except InvalidState:
            # the delivery callback may confirm the order before this write lands
            current = self.store.get_document_by_id(ORDER_COLLECTION, order_id)
            if not current or current["status"] not in ("sent", "confirmed"):
                raise
            logger.info(f"Order {order_id} already {current['status']} when marking it sent")
        return {"id": order_id}

    def record_order_delivery(self, restaurant_id: str, order_id: str, received_items: List[dict]) -> dict:
        """
        Mark an order delivered and add what arrived to inventory.

        Received entries that are not on the order are still added to stock.
        Order lines missing from the delivery are recorded as 0 received.
        The order write, the quantity batch and the history batch are three
        separate commits; every entry is resolved against inventory first so
        an unknown item aborts before anything is written.
        """
        validate_received_items(received_items)
        order = self.get_order(restaurant_id, order_id)
        if order["status"] == "delivered":
            raise InvalidState("Order already delivered")
        if order["status"] == "cancelled":
            raise InvalidState("Cancelled orders cannot be delivered")

        items_by_id = self.inventory.items_by_id(restaurant_id)
        self.inventory.resolve(received_items, items_by_id)

        received = sum_by_id(received_items)
        items = [dict(item, received_quantity=received.get(item["id"], 0)) for item in order["items"]]
        self._write_status(order, {"status": "delivered", "items": items})

        self.inventory.apply_received(restaurant_id, received_items, items_by_id)
        return {"id": order_id}

    def update_order_status(self, restaurant_id: str, order_id: str, status: str) -> dict:
        if status == "delivered":
            raise InvalidState("Orders can only be marked delivered by recording their delivery")
        validate_order_status(status)
        if status == "cancelled":
            return self.cancel_order(restaurant_id, order_id)

        order = self.get_order(restaurant_id, order_id)
        if not can_transition(order["status"], status):
            raise InvalidState(f"Cannot change order status from {order['status']} to {status}")
        self._write_status(order, {"status": status})
        return {"id": order_id}

    def cancel_order(self, restaurant_id: str, order_id: str) -> dict:
        order = self.get_order(restaurant_id, order_id)
        if order["status"] in TERMINAL_STATUSES:
            raise InvalidState("Cannot cancel order that is already delivered or cancelled")
        self._write_status(order, {"status": "cancelled", "cancelled_at": self.now()})
        return {"id": order_id}

    def confirm_from_email(self, email: dict) -> bool:
        """
        Delivery-status callback for queued emails.

        Moves the referenced order to `confirmed` once its email was delivered.
        Safe to replay: an already confirmed order is left as is, and orders
        that moved past confirmation are skipped.
        """
        delivery = email.get("delivery") or {}
        order_id = email.get("order_id")
        if delivery.get("state") != "SUCCESS" or not order_id:
            return False

        order = self.store.get_document_by_id(ORDER_COLLECTION, order_id)
        if not order:
            logger.warning(f"Email {email.get('_id')} references missing order {order_id}")
            return False
        if order["status"] == "confirmed":
            return True
        if not can_transition(order["status"], "confirmed"):
            logger.warning(f"Not confirming order {order_id} in status {order['status']}")
            return False
        self.update_order_status(order["restaurant_id"], order_id, "confirmed")
        return True
