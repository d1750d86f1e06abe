"""
Paystack API client for storefront payments.

Provides:
- Payment reference generation (SXO6-<epoch-ms>-<random>)
- Popup (inline) parameters for the browser widget
- Server-side transaction verification
"""

import random
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.currency import naira_to_kobo
from libs.common.logging import get_logger

logger = get_logger(__name__)

REFERENCE_PREFIX = "SXO6"


@dataclass
class TransactionVerification:
    """Result of GET /transaction/verify/{reference}."""

    reference: str
    status: str  # success, failed, abandoned, ...
    amount: int  # in kobo
    currency: str
    channel: Optional[str] = None
    paid_at: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == "success"


@dataclass
class PopupParams:
    """Parameters for PaystackPop.setup on the client."""

    key: str
    email: str
    amount: int  # in kobo
    currency: str
    reference: str
    metadata: dict[str, Any]


class PaystackError(Exception):
    """Base exception for Paystack API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


def generate_payment_reference() -> str:
    """Unique payment reference like SXO6-1735689600000-482913."""
    timestamp = int(time.time() * 1000)
    return f"{REFERENCE_PREFIX}-{timestamp}-{random.randint(0, 999999)}"


def build_popup_params(
    email: str,
    amount_ngn: Decimal,
    reference: str,
    metadata: dict[str, Any],
    public_key: Optional[str] = None,
) -> PopupParams:
    if public_key is None:
        public_key = get_settings().PAYSTACK_PUBLIC_KEY
    return PopupParams(
        key=public_key,
        email=email,
        amount=naira_to_kobo(amount_ngn),
        currency="NGN",
        reference=reference,
        metadata=metadata,
    )


class PaystackClient:
    """Async client for the Paystack transaction APIs."""

    def __init__(self, secret_key: str = None, base_url: str = None):
        settings = get_settings()
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        if not self.secret_key:
            raise ValueError("PAYSTACK_SECRET_KEY is required")
        self.base_url = (base_url or settings.PAYSTACK_API_BASE_URL).rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to Paystack API."""
        url = f"{self.base_url}{endpoint}"

        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.request(
                method=method,
                url=url,
                headers=self._headers,
                params=params,
                json=json_data,
            )

            try:
                data = response.json()
            except ValueError:
                data = {}

            if not response.is_success:
                logger.error(f"Paystack API error: {response.status_code} - {data}")
                raise PaystackError(
                    message=data.get("message", "Unknown Paystack error"),
                    status_code=response.status_code,
                    response_data=data,
                )

            if not data.get("status"):
                raise PaystackError(
                    message=data.get("message", "Paystack request failed"),
                    response_data=data,
                )

            return data

    # =========================================================================
    # Transaction Methods
    # =========================================================================

    async def verify_transaction(self, reference: str) -> TransactionVerification:
        """
        Verify a transaction by reference.

        Raises:
            PaystackError: If the gateway rejects the lookup
        """
        data = await self._request("GET", f"/transaction/verify/{reference}")
        tx = data.get("data", {}) or {}
        return TransactionVerification(
            reference=tx.get("reference", reference),
            status=tx.get("status", "unknown"),
            amount=int(tx.get("amount") or 0),
            currency=tx.get("currency", "NGN"),
            channel=tx.get("channel"),
            paid_at=tx.get("paid_at") or tx.get("paidAt"),
            raw=tx,
        )
