"""Integration tests for the send-email function endpoint."""

import pytest
from libs.common.emails.core import EmailDeliveryError
from services.communications_service.models import EmailLog, EmailStatus
from sqlalchemy import select

ORDER = {
    "id": "6f1c2a4e-0000-4000-8000-000000000001",
    "order_number": "SXO6-20260301-AB12C",
    "customer_email": "ada@test.com",
    "customer_name": "Ada Obi",
    "subtotal_usd": "180.00",
    "discount_usd": "0.00",
    "shipping_usd": "15.00",
    "total_usd": "195.00",
    "items": [],
}


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture provider calls instead of reaching Resend."""
    sent = []

    async def fake_send_email(to_email, subject, html_body, **kwargs):
        sent.append((to_email, subject, html_body))
        return {"id": "re_msg_123"}

    monkeypatch.setattr(
        "services.communications_service.routers.email.send_email", fake_send_email
    )
    return sent


async def _logs(db):
    result = await db.execute(select(EmailLog))
    return list(result.scalars().all())


@pytest.mark.asyncio
@pytest.mark.integration
async def test_send_confirmation_email(
    communications_client, db_session, function_headers, sent_emails
):
    """POST /functions/v1/send-email: renders, sends and logs the email."""
    response = await communications_client.post(
        "/functions/v1/send-email",
        headers=function_headers,
        json={"type": "order_confirmation", "order": ORDER},
    )

    assert response.status_code == 200, response.text
    assert response.json() == {"success": True, "data": {"id": "re_msg_123"}}

    [(to_email, subject, html)] = sent_emails
    assert to_email == "ada@test.com"
    assert subject == "Order Confirmed - SXO6-20260301-AB12C"
    assert "$195.00" in html

    [log] = await _logs(db_session)
    assert log.status == EmailStatus.SENT
    assert log.provider_id == "re_msg_123"
    assert log.order_number == "SXO6-20260301-AB12C"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_requires_function_key(communications_client, db_session, sent_emails):
    response = await communications_client.post(
        "/functions/v1/send-email",
        headers={"Authorization": "Bearer wrong"},
        json={"type": "order_confirmation", "order": ORDER},
    )

    assert response.status_code == 401
    assert sent_emails == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_apikey_header_alone_is_accepted(
    communications_client, db_session, function_headers, sent_emails
):
    response = await communications_client.post(
        "/functions/v1/send-email",
        headers={"apikey": function_headers["apikey"]},
        json={"type": "order_shipped", "order": {**ORDER, "tracking_number": "DHL-1"}},
    )

    assert response.status_code == 200, response.text
    assert sent_emails[0][1] == "Order Shipped - SXO6-20260301-AB12C"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_json_is_rejected(
    communications_client, db_session, function_headers, sent_emails
):
    response = await communications_client.post(
        "/functions/v1/send-email",
        headers={**function_headers, "Content-Type": "application/json"},
        content=b"{not json",
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON body"}
    [log] = await _logs(db_session)
    assert log.status == EmailStatus.REJECTED


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body,error",
    [
        ({"order": ORDER}, "Missing required fields: type and order"),
        ({"type": "order_confirmation"}, "Missing required fields: type and order"),
        ({"type": "welcome", "order": ORDER}, "Invalid email type"),
        (
            {"type": "order_confirmation", "order": {"order_number": "SXO6-1"}},
            "Order is missing customer_email",
        ),
    ],
)
async def test_bad_requests_are_rejected_and_logged(
    communications_client, db_session, function_headers, sent_emails, body, error
):
    response = await communications_client.post(
        "/functions/v1/send-email", headers=function_headers, json=body
    )

    assert response.status_code == 400
    assert response.json()["error"] == error
    assert sent_emails == []
    [log] = await _logs(db_session)
    assert log.status == EmailStatus.REJECTED
    assert log.error == error



@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("email_type", [{"x": 1}, ["order_shipped"], 42])
async def test_non_string_type_is_logged_as_text(
    communications_client, db_session, function_headers, sent_emails, email_type
):
    response = await communications_client.post(
        "/functions/v1/send-email",
        headers=function_headers,
        json={"type": email_type, "order": ORDER},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email type"
    assert sent_emails == []
    [log] = await _logs(db_session)
    assert log.status == EmailStatus.REJECTED
    assert log.email_type == str(email_type)
    assert log.order_number == ORDER["order_number"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_provider_failure_returns_500(
    communications_client, db_session, function_headers, monkeypatch
):
    async def failing_send_email(to_email, subject, html_body, **kwargs):
        raise EmailDeliveryError("Domain not verified")

    monkeypatch.setattr(
        "services.communications_service.routers.email.send_email", failing_send_email
    )

    response = await communications_client.post(
        "/functions/v1/send-email",
        headers=function_headers,
        json={"type": "order_cancelled", "order": ORDER},
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Domain not verified"}
    [log] = await _logs(db_session)
    assert log.status == EmailStatus.FAILED
    assert log.subject == "Order Cancelled - SXO6-20260301-AB12C"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(communications_client):
    response = await communications_client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "communications"
