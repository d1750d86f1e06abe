"""Currency helpers for the storefront.

Authoritative unit: US dollars (Decimal, 2 places). Nigerian customers pay in
Naira through Paystack, which takes amounts in kobo (100 kobo = ₦1).

Conversion chain
----------------
USD × rate → NGN
NGN × 100  → Kobo
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

# ─── constants ───────────────────────────────────────────────────────────────

KOBO_PER_NAIRA: int = 100
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Coerce to Decimal without float artefacts (floats go through str)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Number) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ─── formatting ──────────────────────────────────────────────────────────────


def format_usd(amount: Number) -> str:
    """Format like ``$1,234.50``."""
    value = quantize_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_ngn(amount: Number) -> str:
    """Format like ``₦1,234.50``."""
    value = quantize_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}₦{abs(value):,.2f}"


def parse_currency(text: str) -> Decimal:
    """Strip symbols and separators from a display string (``"$1,234.50"``)."""
    cleaned = re.sub(r"[^0-9.\-]+", "", text or "")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Not a currency amount: {text!r}")


# ─── conversion helpers ──────────────────────────────────────────────────────


def usd_to_ngn(usd_amount: Number, exchange_rate: Number) -> Decimal:
    """Convert USD to NGN at the given rate, rounded to kobo."""
    return quantize_money(to_decimal(usd_amount) * to_decimal(exchange_rate))


def ngn_to_usd(ngn_amount: Number, exchange_rate: Number) -> Decimal:
    """Convert NGN to USD at the given rate, rounded to cents."""
    return quantize_money(to_decimal(ngn_amount) / to_decimal(exchange_rate))


def naira_to_kobo(naira: Number) -> int:
    """Convert Naira to kobo (round half-up). ₦1 = 100 kobo."""
    return int(
        (to_decimal(naira) * KOBO_PER_NAIRA).quantize(Decimal("1"), ROUND_HALF_UP)
    )


def kobo_to_naira(kobo: int) -> Decimal:
    """Convert kobo to Naira. 100 kobo = ₦1."""
    return quantize_money(Decimal(kobo) / KOBO_PER_NAIRA)


# ─── exchange rate ───────────────────────────────────────────────────────────


async def fetch_exchange_rate(
    client: Optional[httpx.AsyncClient] = None,
) -> Decimal:
    """Fetch the live USD→NGN rate.

    Falls back to ``FALLBACK_EXCHANGE_RATE`` when the lookup fails or the
    payload has no NGN rate. The rate is informational only and never
    changes the USD total of an order.
    """
    settings = get_settings()
    fallback = to_decimal(settings.FALLBACK_EXCHANGE_RATE)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=10.0) as own_client:
                response = await own_client.get(settings.EXCHANGE_RATE_API_URL)
        else:
            response = await client.get(settings.EXCHANGE_RATE_API_URL)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching exchange rate: {e}")
        return fallback

    rate = (data.get("rates") or {}).get("NGN") if isinstance(data, dict) else None
    if not rate:
        logger.warning("Exchange rate payload had no NGN rate, using fallback")
        return fallback
    return to_decimal(rate)
