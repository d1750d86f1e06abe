"""Unit tests for Resend delivery and the send-email function client."""

import json

import httpx
import pytest
from libs.common.emails.client import EmailClient
from libs.common.emails.core import EmailDeliveryError, send_email

# ---------------------------------------------------------------------------
# send_email (Resend)
# ---------------------------------------------------------------------------


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_posts_to_resend():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "re_msg_1"})

    async with _client(handler) as client:
        data = await send_email(
            "ada@test.com", "Order Confirmed", "<p>Hi</p>", client=client
        )

    assert data == {"id": "re_msg_1"}
    [request] = requests
    body = json.loads(request.content)
    assert body["to"] == ["ada@test.com"]
    assert body["subject"] == "Order Confirmed"
    assert body["html"] == "<p>Hi</p>"
    assert request.headers["Authorization"] == "Bearer re_test_key"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_raises_provider_message():
    def handler(request):
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    async with _client(handler) as client:
        with pytest.raises(EmailDeliveryError) as exc:
            await send_email("bad", "Subject", "<p/>", client=client)

    assert str(exc.value) == "Invalid `to` field"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_send_email_wraps_network_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(EmailDeliveryError):
            await send_email("ada@test.com", "Subject", "<p/>", client=client)


# ---------------------------------------------------------------------------
# EmailClient
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_invokes_function_by_name(monkeypatch):
    calls = []

    async def fake_invoke(self, name, body):
        calls.append((name, body))
        return {"success": True, "data": {"id": "re_msg_1"}}

    monkeypatch.setattr(EmailClient, "invoke", fake_invoke)

    sent = await EmailClient(base_url="http://functions.test").send_order_email(
        "order_shipped", {"order_number": "SXO6-1"}
    )

    assert sent is True
    assert calls == [
        ("send-email", {"type": "order_shipped", "order": {"order_number": "SXO6-1"}})
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_rejects_unknown_type_without_calling(monkeypatch):
    async def fail_invoke(self, name, body):
        raise AssertionError("should not be called")

    monkeypatch.setattr(EmailClient, "invoke", fail_invoke)

    sent = await EmailClient(base_url="http://functions.test").send_order_email(
        "welcome", {}
    )

    assert sent is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_returns_false_on_failure(monkeypatch):
    async def failed_invoke(self, name, body):
        return {"success": False, "error": "Domain not verified"}

    async def broken_invoke(self, name, body):
        raise httpx.ConnectError("connection refused")

    client = EmailClient(base_url="http://functions.test")

    monkeypatch.setattr(EmailClient, "invoke", failed_invoke)
    assert await client.send_order_email("order_confirmation", {}) is False

    monkeypatch.setattr(EmailClient, "invoke", broken_invoke)
    assert await client.send_order_email("order_confirmation", {}) is False
