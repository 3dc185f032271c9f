"""
Inventory staleness sweep.

An item is outdated once the whole days since its last update reach the
cadence of its update frequency. Items missing either value are never
flagged. One summary email per run, none when nothing is outdated.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from database import DocumentStore
from errors import Internal
from inventory import utcnow
from notifications import EmailService, render_outdated_items
from schemas import INVENTORY_COLLECTION, EmailData

logger = logging.getLogger(__name__)

CADENCE_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
}


def cadence_days(frequency: str) -> int:
    return CADENCE_DAYS.get(frequency, 1)


def _as_utc(value) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        # stored without offset, written as UTC
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(last_updated: datetime, now: datetime) -> int:
    return (now - last_updated) // timedelta(days=1)


def is_outdated(item: dict, now: datetime) -> bool:
    last_updated = _as_utc(item.get("last_updated"))
    frequency = item.get("update_frequency")
    if last_updated is None or not frequency:
        return False
    return days_since(last_updated, now) >= cadence_days(frequency)


class InventoryMonitor:
    def __init__(
        self,
        store: DocumentStore,
        emails: EmailService,
        recipient: str,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.emails = emails
        self.recipient = recipient
        self.now = now

    def find_outdated_items(self, restaurant_id: Optional[str] = None) -> List[dict]:
        filt = {"restaurant_id": restaurant_id} if restaurant_id else {}
        items = self.store.get_documents(INVENTORY_COLLECTION, filt, sort=[("name", 1)])
        now = self.now()
        return [item for item in items if is_outdated(item, now)]

    def check_outdated_items(self, restaurant_id: Optional[str] = None) -> List[dict]:
        """Email a summary of outdated items. Writes nothing besides the queued email."""
        outdated = self.find_outdated_items(restaurant_id)
        if not outdated:
            logger.info("Inventory sweep: no outdated items")
            return outdated
        if not self.recipient:
            raise Internal("MONITORING_RECIPIENT is not configured")

        self.emails.create_email(EmailData(to=[self.recipient], message=render_outdated_items(outdated)))
        logger.info(f"Inventory sweep: {len(outdated)} outdated items reported to {self.recipient}")
        return outdated
