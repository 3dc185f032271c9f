"""
Pre-write checks for back-office documents.

Pure functions: each takes plain dicts, raises errors.ValidationError on the
first problem found and returns nothing. Partial checks only look at fields
that are present, for use on update payloads.
"""
from datetime import datetime
from typing import Iterable, Optional

from errors import ValidationError
from schemas import ITEM_CATEGORIES, ITEM_UNITS, ORDER_STATUSES, UPDATE_FREQUENCIES

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_negative(value, message: str) -> None:
    if not _is_number(value) or value < 0:
        raise ValidationError(message)


def require_restaurant_id(restaurant_id: Optional[str]) -> None:
    if not restaurant_id:
        raise ValidationError("Restaurant ID is required")


def check_tenant(restaurant_id: str, doc: dict, partial: bool = False) -> None:
    require_restaurant_id(restaurant_id)
    owner = doc.get("restaurant_id")
    if partial and owner is None:
        return
    if owner != restaurant_id:
        raise ValidationError("Restaurant ID mismatch")


def validate_inventory_item(restaurant_id: str, item: dict, partial: bool = False) -> None:
    check_tenant(restaurant_id, item, partial)

    if not partial or "name" in item:
        if not isinstance(item.get("name"), str):
            raise ValidationError("Name must be a string")
    if not partial or "type" in item:
        if item.get("type") not in ("raw", "preparation"):
            raise ValidationError("Invalid item type")
    if not partial or "category" in item:
        if item.get("category") not in ITEM_CATEGORIES:
            raise ValidationError("Invalid item category")
    if not partial or "unit" in item:
        if item.get("unit") not in ITEM_UNITS:
            raise ValidationError("Invalid unit")
    if not partial or "update_frequency" in item:
        if item.get("update_frequency") not in UPDATE_FREQUENCIES:
            raise ValidationError("Invalid update frequency")

    for field, label in (
        ("minimum_quantity", "Minimum quantity"),
        ("current_quantity", "Current quantity"),
        ("current_cost", "Cost"),
    ):
        if not partial or field in item:
            _non_negative(item.get(field), f"{label} cannot be undefined or negative")

    consumption = item.get("average_consumption")
    if consumption:
        for period in ("daily", "weekly", "monthly"):
            _non_negative(consumption.get(period, 0), f"{period.capitalize()} average consumption cannot be negative")


def validate_history_record(restaurant_id: str, item_id: str, record: dict) -> None:
    require_restaurant_id(restaurant_id)
    if not item_id:
        raise ValidationError("Item ID is required")
    if not record.get("date"):
        raise ValidationError("Date is required")
    if record.get("type") not in ("tookInventory", "receivedOrder"):
        raise ValidationError("Invalid history record type")
    _non_negative(record.get("amount"), "Amount cannot be negative")


def validate_take_inventory(restaurant_id: str, items: Iterable[dict]) -> None:
    require_restaurant_id(restaurant_id)
    items = list(items)
    if not items:
        raise ValidationError("Items array cannot be empty")
    for item in items:
        if not item.get("id"):
            raise ValidationError("Item ID is required")
        if not item.get("name"):
            raise ValidationError("Item name is required")
        _non_negative(item.get("quantity"), "Item quantity cannot be negative")


def validate_supplier(restaurant_id: str, supplier: dict, partial: bool = False) -> None:
    check_tenant(restaurant_id, supplier, partial)

    if not partial or "name" in supplier:
        name = supplier.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Supplier name is required")
    if not partial or "dispatch_time" in supplier:
        _non_negative(supplier.get("dispatch_time"), "Dispatch time cannot be negative or undefined")

    days = supplier.get("days_of_delivery")
    if days:
        for day in WEEKDAYS:
            if not isinstance(days.get(day), bool):
                raise ValidationError(f"Invalid {day} value")

    contact = supplier.get("contact_method")
    if contact:
        kind = contact.get("type")
        if kind not in ("email", "phone"):
            raise ValidationError("Invalid contact method type")
        if kind == "email":
            emails = contact.get("emails")
            if not isinstance(emails, list) or not emails or not str(emails[0]).strip():
                raise ValidationError("At least one email address is required")
        if kind == "phone" and not (contact.get("phone") or "").strip():
            raise ValidationError("Phone number is required for phone contact method")


def validate_order_items(items) -> None:
    if not isinstance(items, list):
        raise ValidationError("Items must be an array")
    if not items:
        raise ValidationError("Order must contain at least one item")
    for item in items:
        if not item.get("id"):
            raise ValidationError("Item ID is required")
        if not item.get("name"):
            raise ValidationError("Item name is required")
        for field, label in (
            ("current_quantity", "Current quantity"),
            ("order_quantity", "Order quantity"),
            ("received_quantity", "Received quantity"),
        ):
            _non_negative(item.get(field, 0), f"{label} cannot be negative")
        if not item.get("unit"):
            raise ValidationError("Unit is required")


def validate_delivery_date(value) -> None:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError("Invalid expected delivery date format")


def validate_order(restaurant_id: str, order: dict, partial: bool = False) -> None:
    check_tenant(restaurant_id, order, partial)

    if not partial or "supplier_id" in order:
        if not order.get("supplier_id") or not isinstance(order["supplier_id"], str):
            raise ValidationError("Supplier information is required")
    if not partial or "supplier_name" in order:
        if not order.get("supplier_name") or not isinstance(order["supplier_name"], str):
            raise ValidationError("Supplier information is required")
    if not partial or "items" in order:
        validate_order_items(order.get("items"))
    if not partial or "expected_delivery" in order:
        validate_delivery_date(order.get("expected_delivery"))
    if "status" in order:
        validate_order_status(order["status"])


def validate_order_status(status) -> None:
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid order status")


def validate_received_items(received_items: Iterable[dict]) -> None:
    for item in received_items:
        if not item.get("id"):
            raise ValidationError("Item ID is required")
        _non_negative(item.get("quantity"), "Received quantity cannot be negative")
