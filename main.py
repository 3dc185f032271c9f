import logging
from typing import List, Optional

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

import config
from database import DocumentStore
from errors import GENERIC_ERROR_MESSAGE, BackOfficeError, Internal
from inventory import InventoryService
from monitoring import InventoryMonitor
from orders import OrderService
from schemas import ORDER_STATUSES, Order, OrderItem, OrderStatus, TakeInventoryItem
from services import inventory_monitor, order_service
from triggers import on_email_written

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Restaurant Back-Office API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================== Dependencies =====================
# One store, and so one MongoClient pool, per process. Services are built per request.
_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    global _store
    if _store is None:
        _store = DocumentStore.from_env()
    return _store


def get_order_service(store: DocumentStore = Depends(get_store)) -> OrderService:
    return order_service(store)


def get_inventory_service(store: DocumentStore = Depends(get_store)) -> InventoryService:
    return InventoryService(store)


def get_inventory_monitor(store: DocumentStore = Depends(get_store)) -> InventoryMonitor:
    return inventory_monitor(store)


# ===================== Envelope & errors =====================
def ok(data=None) -> dict:
    return {"success": True, "data": data}


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(BackOfficeError)
def handle_back_office_error(request: Request, exc: BackOfficeError):
    if isinstance(exc, Internal):
        logger.error(f"{request.url.path} failed: {exc.message}")
        return _fail(exc.status_code, GENERIC_ERROR_MESSAGE)
    return _fail(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _fail(400, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return _fail(400, f"{field}: {first.get('msg')}" if field else first.get("msg"))


@app.exception_handler(PyMongoError)
def handle_store_error(request: Request, exc: PyMongoError):
    logger.exception(f"{request.url.path} failed on the document store")
    return _fail(500, GENERIC_ERROR_MESSAGE)


# ===================== Request models =====================
class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OrderRef(StrictModel):
    restaurant_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)


class ReceivedItem(StrictModel):
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    quantity: float = Field(..., ge=0)
    unit: Optional[str] = None


class RecordDeliveryRequest(OrderRef):
    received_items: List[ReceivedItem]


class UpdateOrderStatusRequest(OrderRef):
    status: str


class CreateOrderRequest(StrictModel):
    restaurant_id: str = Field(..., min_length=1)
    supplier_id: str = Field(..., min_length=1)
    supplier_name: str = Field(..., min_length=1)
    items: List[OrderItem]
    expected_delivery: str


class ListOrdersRequest(StrictModel):
    restaurant_id: str = Field(..., min_length=1)
    status: Optional[OrderStatus] = None


class TakeInventoryRequest(StrictModel):
    restaurant_id: str = Field(..., min_length=1)
    items: List[TakeInventoryItem]


class ItemHistoryRequest(StrictModel):
    restaurant_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)


class CheckInventoryRequest(StrictModel):
    restaurant_id: Optional[str] = None


class EmailWrittenRequest(StrictModel):
    email_id: str = Field(..., min_length=1)


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Restaurant Back-Office API running"}


# ===================== Orders =====================
@app.post("/createOrder")
def create_order(payload: CreateOrderRequest, orders: OrderService = Depends(get_order_service)):
    order = Order(**payload.model_dump())
    return ok(orders.create_order(payload.restaurant_id, order))


@app.post("/getOrder")
def get_order(payload: OrderRef, orders: OrderService = Depends(get_order_service)):
    return ok(orders.get_order(payload.restaurant_id, payload.order_id))


@app.post("/getOrders")
def get_orders(payload: ListOrdersRequest, orders: OrderService = Depends(get_order_service)):
    return ok(orders.get_orders(payload.restaurant_id, payload.status))


@app.post("/sendOrder")
def send_order(payload: OrderRef, orders: OrderService = Depends(get_order_service)):
    return ok(orders.send_order(payload.restaurant_id, payload.order_id))


@app.post("/recordOrderDelivery")
def record_order_delivery(payload: RecordDeliveryRequest, orders: OrderService = Depends(get_order_service)):
    received = [item.model_dump() for item in payload.received_items]
    return ok(orders.record_order_delivery(payload.restaurant_id, payload.order_id, received))


@app.post("/updateOrderStatus")
def update_order_status(payload: UpdateOrderStatusRequest, orders: OrderService = Depends(get_order_service)):
    return ok(orders.update_order_status(payload.restaurant_id, payload.order_id, payload.status))


@app.post("/cancelOrder")
def cancel_order(payload: OrderRef, orders: OrderService = Depends(get_order_service)):
    return ok(orders.cancel_order(payload.restaurant_id, payload.order_id))


# ===================== Inventory =====================
@app.post("/takeInventory")
def take_inventory(payload: TakeInventoryRequest, inventory: InventoryService = Depends(get_inventory_service)):
    items = [item.model_dump() for item in payload.items]
    return ok(inventory.take_inventory(payload.restaurant_id, items))


@app.post("/getItemHistory")
def get_item_history(payload: ItemHistoryRequest, inventory: InventoryService = Depends(get_inventory_service)):
    return ok(inventory.get_item_history(payload.restaurant_id, payload.item_id))


@app.post("/checkInventory")
def check_inventory(payload: CheckInventoryRequest, monitor: InventoryMonitor = Depends(get_inventory_monitor)):
    outdated = monitor.check_outdated_items(payload.restaurant_id)
    return ok({"outdated": len(outdated)})


# ===================== Triggers =====================
@app.post("/onNotificationDeliveryWritten")
def on_notification_delivery_written(payload: EmailWrittenRequest, orders: OrderService = Depends(get_order_service)):
    return ok({"confirmed": on_email_written(orders, payload.email_id)})


# ===================== Schema Export for Docs =====================
@app.get("/schema")
def get_schema():
    return {
        "collections": [
            "restaurant",
            "inventory",
            "inventory_history",
            "take_inventory",
            "order",
            "supplier",
            "email",
        ],
        "order_statuses": list(ORDER_STATUSES),
        "notes": "Tenant-scoped documents carry restaurant_id. Models live in schemas.py.",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
