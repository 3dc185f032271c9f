"""
Email dispatch through an outbox collection.

Emails are written as documents to the `email` collection; the mail delivery
extension watching that collection sends them and records the outcome in the
document's `delivery` sub-record.
"""
import logging
from datetime import date, datetime
from html import escape
from typing import Iterable, List, Optional

from database import DocumentStore
from errors import Internal, UnsupportedContactMethod
from schemas import EMAIL_COLLECTION, EmailData, EmailMessage

logger = logging.getLogger(__name__)


def _format_date(value) -> str:
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    return ""


def supplier_emails(supplier: dict) -> List[str]:
    contact = supplier.get("contact_method") or {}
    emails = [e for e in contact.get("emails") or [] if str(e).strip()]
    if contact.get("type") != "email" or not emails:
        raise UnsupportedContactMethod("Supplier does not have email contact method")
    return emails


def render_order_email(restaurant: dict, order: dict, supplier: dict, today: date) -> EmailMessage:
    rows = "".join(
        f"""
        <tr>
          <td style="padding: 8px">{escape(item['name'])}</td>
          <td style="padding: 8px">{item['order_quantity']:g} {escape(item['unit'])}</td>
        </tr>"""
        for item in order["items"]
    )
    html = f"""
      <h2><u>New order from {escape(restaurant['name'])}</u></h2>
      <span><b>Order ID:</b> {order['_id']}</span><br>
      <table style="width: 100%; border-collapse: collapse; margin-top: 20px">
        <thead>
          <tr style="background-color: #f3f4f6">
            <th style="padding: 8px; text-align: left">Product</th>
            <th style="padding: 8px; text-align: left">Quantity</th>
          </tr>
        </thead>
        <tbody style="border: 1px solid #e5e7eb">{rows}
        </tbody>
      </table>

      <h3><u>Delivery details:</u></h3>
      <span><b>Delivery date:</b> {_format_date(order.get('expected_delivery'))}</span><br>
      <span><b>Address:</b> {escape(restaurant.get('address') or '')}</span><br>

      <p>Thank you!</p>
      <p>{escape(restaurant['name'])}</p>
    """
    subject = " - ".join(
        [restaurant["name"], "Order", supplier["name"], _format_date(today), order["_id"]]
    )
    return EmailMessage(subject=subject, html=html)


def render_outdated_items(items: Iterable[dict]) -> EmailMessage:
    rows = "".join(
        f"""
            <tr>
              <td style="padding: 8px"><strong>{escape(item['name'])}</strong></td>
              <td style="padding: 8px">{_format_date(item.get('last_updated'))}</td>
              <td style="padding: 8px">{escape(item['update_frequency'])}</td>
            </tr>"""
        for item in items
    )
    html = f"""
      <h3>The following items need to be updated:</h3>
      <br/>
      <table style="width: 100%; border-collapse: collapse;">
        <thead>
          <tr style="background-color: #f3f4f6">
            <th style="padding: 8px; text-align: left">Item Name</th>
            <th style="padding: 8px; text-align: left">Last Updated</th>
            <th style="padding: 8px; text-align: left">Required Frequency</th>
          </tr>
        </thead>
        <tbody style="border: 1px solid #e5e7eb">{rows}
        </tbody>
      </table>
    """
    return EmailMessage(subject="Inventory Update Reminder", html=html)


class EmailService:
    def __init__(self, store: DocumentStore, cc: Optional[List[str]] = None):
        self.store = store
        self.cc = list(cc or [])

    def create_email(self, email: EmailData) -> str:
        email_id = self.store.create_document(EMAIL_COLLECTION, email)
        if not email_id:
            raise Internal("Failed to create email document")
        logger.info(f"Queued email {email_id} to {', '.join(email.to)}")
        return email_id

    def create_order_email(self, restaurant: dict, order: dict, supplier: dict, today: date) -> str:
        email = EmailData(
            to=supplier_emails(supplier),
            cc=self.cc,
            message=render_order_email(restaurant, order, supplier, today),
            order_id=order["_id"],
        )
        return self.create_email(email)

    def get_email(self, email_id: str) -> Optional[dict]:
        return self.store.get_document_by_id(EMAIL_COLLECTION, email_id)
