"""Unit tests for the shared currency, date and validation helpers."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from libs.common.currency import (
    fetch_exchange_rate,
    format_ngn,
    format_usd,
    kobo_to_naira,
    naira_to_kobo,
    ngn_to_usd,
    parse_currency,
    usd_to_ngn,
)
from libs.common.datetime_utils import (
    format_date,
    format_datetime,
    is_future,
    is_past,
    parse_datetime,
    relative_time,
)
from libs.common.validation import (
    is_valid_card_number,
    is_valid_email,
    is_valid_phone,
    is_valid_postal_code,
    slugify,
    validate_password,
)

NOW = datetime(2026, 1, 5, 15, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_format_usd():
    assert format_usd(Decimal("1234.5")) == "$1,234.50"
    assert format_usd(0) == "$0.00"
    assert format_usd(Decimal("-36")) == "-$36.00"


@pytest.mark.unit
def test_format_ngn():
    assert format_ngn(Decimal("238500")) == "₦238,500.00"


@pytest.mark.unit
def test_parse_currency_strips_symbols():
    assert parse_currency("$1,234.50") == Decimal("1234.50")
    assert parse_currency("₦ 2,000") == Decimal("2000")


@pytest.mark.unit
def test_parse_currency_rejects_garbage():
    with pytest.raises(ValueError):
        parse_currency("free")


@pytest.mark.unit
def test_usd_ngn_conversion_round_trip_to_cents():
    assert usd_to_ngn(Decimal("159.00"), Decimal("1500")) == Decimal("238500.00")
    assert ngn_to_usd(Decimal("1000"), Decimal("1550")) == Decimal("0.65")


@pytest.mark.unit
def test_kobo_conversion():
    assert naira_to_kobo(Decimal("238500.00")) == 23850000
    assert naira_to_kobo(Decimal("0.005")) == 1
    assert kobo_to_naira(23850050) == Decimal("238500.50")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_exchange_rate_reads_ngn_rate():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"rates": {"NGN": 1602.5}})
    )
    async with httpx.AsyncClient(transport=transport) as client:
        assert await fetch_exchange_rate(client) == Decimal("1602.5")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_exchange_rate_falls_back_on_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with httpx.AsyncClient(transport=transport) as client:
        assert await fetch_exchange_rate(client) == Decimal("1550")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_exchange_rate_falls_back_without_ngn():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"rates": {"EUR": 0.9}})
    )
    async with httpx.AsyncClient(transport=transport) as client:
        assert await fetch_exchange_rate(client) == Decimal("1550")


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_parse_datetime_handles_z_suffix_and_naive_values():
    assert parse_datetime("2026-01-05T15:30:00Z") == NOW
    assert parse_datetime("2026-01-05T15:30:00") == NOW
    assert parse_datetime("not a date") is None
    assert parse_datetime(None) is None


@pytest.mark.unit
def test_format_date_and_datetime():
    assert format_date(NOW) == "Jan 05, 2026"
    assert format_datetime("2026-01-05T15:30:00Z") == "Jan 05, 2026 - 03:30 PM"
    assert format_date("") == ""


@pytest.mark.unit
def test_relative_time():
    assert relative_time(NOW - timedelta(seconds=10), now=NOW) == (
        "less than a minute ago"
    )
    assert relative_time(NOW - timedelta(hours=2), now=NOW) == "2 hours ago"
    assert relative_time(NOW + timedelta(days=3), now=NOW) == "in 3 days"
    assert relative_time(NOW - timedelta(days=1), now=NOW) == "1 day ago"


@pytest.mark.unit
def test_is_past_and_is_future():
    assert is_past(NOW - timedelta(minutes=1), now=NOW)
    assert not is_past(NOW + timedelta(minutes=1), now=NOW)
    assert is_future("2026-01-06T00:00:00Z", now=NOW)
    assert not is_future(None, now=NOW)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_email_validation():
    assert is_valid_email("ada@sxo6luxe.com")
    assert not is_valid_email("ada@sxo6luxe")
    assert not is_valid_email("ada lovelace@test.com")
    assert not is_valid_email("")


@pytest.mark.unit
def test_phone_validation():
    assert is_valid_phone("+234 (801) 234-5678")
    assert not is_valid_phone("0801-234")
    assert not is_valid_phone("0801234567x")


@pytest.mark.unit
def test_password_rules_report_every_failure():
    check = validate_password("short")
    assert not check.is_valid
    assert "Password must be at least 8 characters" in check.errors
    assert "Password must contain at least one uppercase letter" in check.errors
    assert "Password must contain at least one number" in check.errors
    assert "Password must contain at least one special character" in check.errors

    assert validate_password("Str0ng!Pass").is_valid


@pytest.mark.unit
def test_card_number_luhn_check():
    assert is_valid_card_number("4242 4242 4242 4242")
    assert not is_valid_card_number("4242 4242 4242 4241")
    assert not is_valid_card_number("4242")


@pytest.mark.unit
def test_postal_codes_by_country():
    assert is_valid_postal_code("94105-1234", "US")
    assert is_valid_postal_code("101233", "ng")
    assert is_valid_postal_code("SW1A 1AA", "GB")
    assert not is_valid_postal_code("1234", "US")
    assert is_valid_postal_code("75008", "FR")


@pytest.mark.unit
def test_slugify():
    assert slugify("Silk Wrap Dress (Black)") == "silk-wrap-dress-black"
    assert slugify("  --Hello, World!-- ") == "hello-world"
