"""
Core email sending through the Resend API.
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or cannot receive a message."""


async def send_email(
    to_email: str,
    subject: str,
    html_body: str,
    from_email: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """
    Send an HTML email via Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_body: Rendered HTML body
        from_email: Sender (defaults to EMAIL_FROM, e.g. ``SXO6LUXE <ac@sxo6luxe.com>``)
        client: Optional shared httpx client

    Returns:
        The provider response payload (contains the message ``id``).

    Raises:
        EmailDeliveryError: key missing, network failure or non-2xx response.
    """
    settings = get_settings()
    if not settings.RESEND_API_KEY:
        raise EmailDeliveryError("RESEND_API_KEY not configured")

    payload = {
        "from": from_email or settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html_body,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    logger.info(f"Sending email to {to_email}: {subject}")
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=30.0) as own_client:
                response = await own_client.post(
                    settings.RESEND_API_URL, json=payload, headers=headers
                )
        else:
            response = await client.post(
                settings.RESEND_API_URL, json=payload, headers=headers
            )
    except httpx.RequestError as e:
        raise EmailDeliveryError(f"Could not reach email provider: {e}") from e

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400:
        message = data.get("message") if isinstance(data, dict) else None
        raise EmailDeliveryError(message or "Failed to send email")

    logger.info(f"Email sent successfully to {to_email}")
    return data
