"""Service construction from a document store and the runtime configuration."""
import config
from database import DocumentStore
from inventory import InventoryService
from monitoring import InventoryMonitor
from notifications import EmailService
from orders import OrderService


def email_service(store: DocumentStore) -> EmailService:
    return EmailService(store, cc=config.ORDER_EMAIL_CC)


def order_service(store: DocumentStore) -> OrderService:
    return OrderService(store, email_service(store), InventoryService(store))


def inventory_monitor(store: DocumentStore) -> InventoryMonitor:
    return InventoryMonitor(store, email_service(store), config.MONITORING_RECIPIENT)
