"""
Database Schemas for the Restaurant Back-Office

Each Pydantic model below corresponds to a MongoDB document.
Tenant-scoped documents carry the owning restaurant's id in `restaurant_id`.
"""
from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, EmailStr

ORDER_COLLECTION = "order"
INVENTORY_COLLECTION = "inventory"
HISTORY_COLLECTION = "inventory_history"
TAKE_INVENTORY_COLLECTION = "take_inventory"
SUPPLIER_COLLECTION = "supplier"
RESTAURANT_COLLECTION = "restaurant"
EMAIL_COLLECTION = "email"

OrderStatus = Literal["pending", "sent", "confirmed", "delivered", "cancelled"]
ORDER_STATUSES = ("pending", "sent", "confirmed", "delivered", "cancelled")

UpdateFrequency = Literal["daily", "weekly", "monthly"]
UPDATE_FREQUENCIES = ("daily", "weekly", "monthly")

ItemType = Literal["raw", "preparation"]
ITEM_UNITS = ("mg", "g", "kg", "ml", "l", "units", "pieces", "servings")
ITEM_CATEGORIES = (
    "Raw Materials",
    "Cleaning",
    "Consumables",
    "Drinks",
    "Fruits and Vegetables",
    "Eggs, Dairy and Derivatives",
    "Cereals, Rice and Pasta",
    "Dry Seasonings and Spices",
    "Sauces",
    "Oils, Fats and Vinegars",
    "Preserved Foods",
    "Frozen Foods",
    "Pastry and Baked Goods",
    "Fish and Seafood",
    "Meats",
    "Packaging",
    "Other",
)

HistoryType = Literal["tookInventory", "receivedOrder"]
DeliveryState = Literal["PENDING", "SUCCESS", "FAILURE"]


class Restaurant(BaseModel):
    name: str = Field(..., description="Restaurant name")
    address: str = Field("", description="Delivery address printed on orders")


class DaysOfDelivery(BaseModel):
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False


class ContactMethod(BaseModel):
    type: Literal["email", "phone"]
    emails: List[EmailStr] = []
    phone: Optional[str] = None


class Supplier(BaseModel):
    restaurant_id: str = Field(..., description="Owning restaurant _id")
    name: str
    days_of_delivery: DaysOfDelivery = DaysOfDelivery()
    dispatch_time: int = Field(0, ge=0, description="Lead time in days")
    contact_method: Optional[ContactMethod] = None


class AverageConsumption(BaseModel):
    daily: float = Field(0, ge=0)
    weekly: float = Field(0, ge=0)
    monthly: float = Field(0, ge=0)


class InventoryItem(BaseModel):
    restaurant_id: str = Field(..., description="Owning restaurant _id")
    name: str
    type: ItemType = "raw"
    category: str = "Other"
    unit: str = "units"
    current_quantity: float = Field(0, ge=0)
    minimum_quantity: float = Field(0, ge=0)
    last_updated: Optional[datetime] = None
    update_frequency: Optional[UpdateFrequency] = None
    supplier_id: Optional[str] = None
    average_consumption: Optional[AverageConsumption] = None
    current_cost: float = Field(0, ge=0)


class InventoryHistoryRecord(BaseModel):
    restaurant_id: str
    item_id: str = Field(..., description="Reference to inventory _id")
    date: datetime
    amount: float = Field(..., ge=0)
    type: HistoryType


class TakeInventoryItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    quantity: float = Field(..., ge=0)


class TakeInventory(BaseModel):
    restaurant_id: str
    timestamp: datetime
    items: List[TakeInventoryItem]


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Reference to inventory _id")
    name: str
    current_quantity: float = Field(0, ge=0, description="Quantity on hand when ordered")
    order_quantity: float = Field(..., ge=0)
    received_quantity: float = Field(0, ge=0)
    unit: str


class Order(BaseModel):
    restaurant_id: str = Field(..., description="Owning restaurant _id")
    supplier_id: str
    supplier_name: str
    items: List[OrderItem]
    status: OrderStatus = "pending"
    expected_delivery: str = Field(..., description="YYYY-MM-DD")
    cancelled_at: Optional[datetime] = None


class EmailMessage(BaseModel):
    subject: str
    html: str


class EmailDelivery(BaseModel):
    """Written by the mail delivery extension, never by this service."""
    state: DeliveryState = "PENDING"
    attempts: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    error: Optional[str] = None


class EmailData(BaseModel):
    to: List[str]
    cc: List[str] = []
    message: EmailMessage
    order_id: Optional[str] = Field(None, description="Set on order emails")
    delivery: Optional[EmailDelivery] = None
