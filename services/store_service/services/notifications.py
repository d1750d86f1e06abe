"""Order notification emails (best effort)."""

from typing import Optional

from libs.common.emails.client import EmailClient, get_email_client
from libs.common.logging import get_logger
from services.store_service.models import Order
from services.store_service.schemas import OrderResponse

logger = get_logger(__name__)


def order_email_payload(order: Order) -> dict:
    """Serialize an order (with items) into the send-email request body."""
    return OrderResponse.model_validate(order).model_dump(mode="json")


async def send_order_notification(
    email_type: str, order: Order, email_client: Optional[EmailClient] = None
) -> bool:
    """Send an order email. Failures are logged and reported as False."""
    client = email_client or get_email_client()
    sent = await client.send_order_email(email_type, order_email_payload(order))
    if sent:
        logger.info(f"Sent {email_type} email for order {order.order_number}")
    else:
        logger.error(f"Failed to send {email_type} email for {order.order_number}")
    return sent
