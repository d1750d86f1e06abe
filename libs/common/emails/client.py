"""
Client for the ``send-email`` function.

Order notifications are rendered and delivered by the communications
service (or the hosted edge function of the same name). Callers treat a
notification as best effort: ``send_order_email`` logs failures and returns
False instead of raising.

Usage:
    from libs.common.emails.client import get_email_client

    sent = await get_email_client().send_order_email("order_shipped", order_payload)
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

ORDER_EMAIL_TYPES = (
    "order_confirmation",
    "order_shipped",
    "order_delivered",
    "order_cancelled",
)


class EmailClient:
    """HTTP client that invokes the send-email function by name."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        settings = get_settings()
        self.base_url = (base_url or settings.functions_base_url).rstrip("/")
        self.function_name = settings.SEND_EMAIL_FUNCTION_NAME
        self.timeout = timeout

    def _get_auth_headers(self) -> dict[str, str]:
        # Edge functions accept the anon key as both bearer and apikey.
        settings = get_settings()
        return {
            "Authorization": f"Bearer {settings.SUPABASE_ANON_KEY}",
            "apikey": settings.SUPABASE_ANON_KEY,
        }

    async def invoke(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body to ``{base_url}/{name}``. Raises on HTTP errors."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/{name}",
                json=body,
                headers=self._get_auth_headers(),
            )
            response.raise_for_status()
            return response.json()

    async def send_order_email(self, email_type: str, order: dict[str, Any]) -> bool:
        """
        Send one of the order notification emails.

        Args:
            email_type: One of ORDER_EMAIL_TYPES
            order: Serialized order (must include customer_email and order_number)

        Returns:
            True if the function reported success, False otherwise
        """
        if email_type not in ORDER_EMAIL_TYPES:
            logger.error(f"Unknown order email type: {email_type}")
            return False

        try:
            result = await self.invoke(
                self.function_name, {"type": email_type, "order": order}
            )
            success = bool(result.get("success", False))
            if not success:
                logger.error(
                    f"Email function reported failure for {email_type}: "
                    f"{result.get('error')}"
                )
            return success
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Email function returned {e.response.status_code}: {e.response.text}"
            )
            return False
        except Exception as e:
            logger.error(f"Error invoking email function: {e}")
            return False


# Singleton instance
_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get the singleton EmailClient instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
