"""
Change-on-write handlers.

Email documents are rewritten by the mail delivery extension as it works
through them; each write is run through the order confirmation callback.
Writes may be seen more than once, which the callback tolerates.
"""
import logging

from database import DocumentStore
from errors import NotFound
from orders import OrderService
from schemas import EMAIL_COLLECTION
from services import order_service

logger = logging.getLogger(__name__)


def on_email_written(orders: OrderService, email_id: str) -> bool:
    email = orders.emails.get_email(email_id)
    if not email:
        raise NotFound("Email not found")
    return orders.confirm_from_email(email)


def watch_email_deliveries(store: DocumentStore) -> None:
    """Block on the email change stream, confirming orders as their emails get delivered."""
    orders = order_service(store)
    logger.info("Watching email deliveries")
    for email in store.watch_collection(EMAIL_COLLECTION):
        if orders.confirm_from_email(email):
            logger.info(f"Email {email['_id']} delivered, order {email['order_id']} confirmed")


if __name__ == "__main__":
    import config
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    watch_email_deliveries(DocumentStore.from_env())
