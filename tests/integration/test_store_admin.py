"""Integration tests for admin order, coupon, customer and dashboard endpoints."""

import uuid
from decimal import Decimal

import pytest
from services.store_service.models import OrderStatus, PaymentStatus
from tests.factories import (
    CouponFactory,
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProfileFactory,
)
from tests.fakes import auth_headers


async def _admin_headers(db):
    admin = ProfileFactory.create(is_admin=True)
    db.add(admin)
    await db.commit()
    return auth_headers(str(admin.id), email=admin.email)


async def _order(db, **overrides):
    order = OrderFactory.create(**overrides)
    db.add(order)
    await db.flush()
    db.add(OrderItemFactory.create(order_id=order.id))
    await db.commit()
    return order


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "path", ["/admin/store/orders", "/admin/store/coupons", "/admin/store/customers", "/admin/store/dashboard"]
)
async def test_admin_endpoints_reject_customers(store_client, db_session, path):
    customer = ProfileFactory.create()
    db_session.add(customer)
    await db_session.commit()

    response = await store_client.get(path, headers=auth_headers(str(customer.id)))

    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_orders_with_filters(store_client, db_session):
    headers = await _admin_headers(db_session)
    paid = await _order(
        db_session,
        customer_name="Ada Obi",
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.PAID,
    )
    await _order(db_session, customer_name="Jane Doe")

    everything = await store_client.get("/admin/store/orders", headers=headers)
    assert everything.status_code == 200
    assert len(everything.json()) == 2

    by_search = await store_client.get(
        "/admin/store/orders", headers=headers, params={"search": "ada"}
    )
    assert [o["id"] for o in by_search.json()] == [str(paid.id)]

    by_payment = await store_client.get(
        "/admin/store/orders", headers=headers, params={"payment_status": "paid"}
    )
    assert [o["id"] for o in by_payment.json()] == [str(paid.id)]

    by_status = await store_client.get(
        "/admin/store/orders", headers=headers, params={"status": "pending"}
    )
    assert [o["customer_name"] for o in by_status.json()] == ["Jane Doe"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_order_detail(store_client, db_session):
    headers = await _admin_headers(db_session)
    order = await _order(db_session)

    response = await store_client.get(f"/admin/store/orders/{order.id}", headers=headers)
    assert response.status_code == 200
    assert len(response.json()["items"]) == 1

    missing = await store_client.get(f"/admin/store/orders/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ship_order_notifies_customer(store_client, db_session, email_client):
    """PATCH /admin/store/orders/{id}/status: shipped sends the shipped email."""
    headers = await _admin_headers(db_session)
    order = await _order(db_session, status=OrderStatus.PROCESSING)

    response = await store_client.patch(
        f"/admin/store/orders/{order.id}/status",
        headers=headers,
        json={"status": "shipped"},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["status"] == "shipped"
    assert data["shipped_at"] is not None
    assert email_client.types() == ["order_shipped"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_status_is_rejected(store_client, db_session):
    headers = await _admin_headers(db_session)
    order = await _order(db_session)

    response = await store_client.patch(
        f"/admin/store/orders/{order.id}/status",
        headers=headers,
        json={"status": "lost"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delivered_order_only_accepts_tracking(store_client, db_session):
    headers = await _admin_headers(db_session)
    order = await _order(db_session, status=OrderStatus.DELIVERED)

    reopened = await store_client.patch(
        f"/admin/store/orders/{order.id}/status",
        headers=headers,
        json={"status": "pending"},
    )
    assert reopened.status_code == 409

    tracked = await store_client.patch(
        f"/admin/store/orders/{order.id}/tracking",
        headers=headers,
        json={"tracking_number": "TRK123"},
    )
    assert tracked.status_code == 200, tracked.text
    assert tracked.json()["tracking_number"] == "TRK123"
    assert tracked.json()["status"] == "delivered"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_tracking_and_notes(store_client, db_session, email_client):
    headers = await _admin_headers(db_session)
    order = await _order(db_session, status=OrderStatus.PROCESSING)

    tracked = await store_client.patch(
        f"/admin/store/orders/{order.id}/tracking",
        headers=headers,
        json={"tracking_number": "DHL-1234567"},
    )
    assert tracked.status_code == 200, tracked.text
    assert tracked.json()["tracking_number"] == "DHL-1234567"
    assert tracked.json()["status"] == "shipped"
    assert email_client.types() == ["order_shipped"]

    noted = await store_client.patch(
        f"/admin/store/orders/{order.id}/notes",
        headers=headers,
        json={"notes": "Left with concierge"},
    )
    assert noted.json()["notes"] == "Left with concierge"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_steps_after_payment(store_client, db_session, paystack):
    """GET /admin/store/orders/{id}/steps: every step completed after a paid checkout."""
    headers = await _admin_headers(db_session)
    product = ProductFactory.create()
    db_session.add(product)
    await db_session.commit()

    added = await store_client.post(
        "/store/cart/items", json={"product_id": str(product.id)}
    )
    cookie = {"Cookie": f"guest_session_id={added.cookies.get('guest_session_id')}"}
    created = await store_client.post(
        "/store/checkout",
        headers=cookie,
        json={
            "customer": {
                "email": "ada@test.com",
                "full_name": "Ada Obi",
                "nationality": "Nigeria",
            },
            "shipping_address": {
                "full_name": "Ada Obi",
                "address_line1": "12 Admiralty Way",
                "city": "Lagos",
                "country": "Nigeria",
            },
        },
    )
    data = created.json()
    paystack.expect(data["payment"]["reference"], data["payment"]["amount"])
    await store_client.post(
        f"/store/checkout/orders/{data['order_id']}/confirm",
        headers=cookie,
        json={"reference": data["payment"]["reference"]},
    )

    response = await store_client.get(
        f"/admin/store/orders/{data['order_id']}/steps", headers=headers
    )

    assert response.status_code == 200, response.text
    steps = {s["step"]: s["status"] for s in response.json()}
    assert steps == {
        "mark_paid": "completed",
        "record_transaction": "completed",
        "send_confirmation": "completed",
        "decrement_inventory": "completed",
        "clear_cart": "completed",
    }

    resumed = await store_client.post(
        f"/admin/store/orders/{data['order_id']}/resume", headers=headers
    )
    assert resumed.status_code == 200
    assert resumed.json()["success"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_resume_unpaid_order_is_rejected(store_client, db_session):
    headers = await _admin_headers(db_session)
    order = await _order(db_session)

    response = await store_client.post(
        f"/admin/store/orders/{order.id}/resume", headers=headers
    )

    assert response.status_code == 402
    assert response.json()["detail"] == "Payment has not been confirmed for this order"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_coupon_uppercases_code(store_client, db_session):
    headers = await _admin_headers(db_session)

    response = await store_client.post(
        "/admin/store/coupons",
        headers=headers,
        json={"code": " welcome10 ", "discount_type": "percentage", "discount_value": "10"},
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["code"] == "WELCOME10"
    assert data["usage_count"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_coupon_rejects_percentage_over_100(store_client, db_session):
    headers = await _admin_headers(db_session)

    response = await store_client.post(
        "/admin/store/coupons",
        headers=headers,
        json={"code": "TOOMUCH", "discount_type": "percentage", "discount_value": "150"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_coupon_code_conflicts(store_client, db_session):
    headers = await _admin_headers(db_session)
    db_session.add(CouponFactory.create(code="SAVE20"))
    await db_session.commit()

    response = await store_client.post(
        "/admin/store/coupons",
        headers=headers,
        json={"code": "save20", "discount_type": "fixed_usd", "discount_value": "20"},
    )

    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_toggle_and_delete_coupon(store_client, db_session):
    headers = await _admin_headers(db_session)
    coupon = CouponFactory.create(code="SPRING")
    db_session.add(coupon)
    await db_session.commit()
    url = f"/admin/store/coupons/{coupon.id}"

    too_high = await store_client.patch(url, headers=headers, json={"discount_value": "120"})
    assert too_high.status_code == 400
    assert too_high.json()["detail"] == "Percentage discount cannot exceed 100"

    updated = await store_client.patch(
        url, headers=headers, json={"discount_value": "25", "usage_limit": 50}
    )
    assert updated.status_code == 200, updated.text
    assert Decimal(updated.json()["discount_value"]) == Decimal("25")
    assert updated.json()["usage_limit"] == 50

    toggled = await store_client.post(f"{url}/toggle-active", headers=headers)
    assert toggled.json()["is_active"] is False

    deleted = await store_client.delete(url, headers=headers)
    assert deleted.status_code == 204

    listed = await store_client.get("/admin/store/coupons", headers=headers)
    assert listed.json() == []


# ---------------------------------------------------------------------------
# Customers and dashboard
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customers_with_order_totals(store_client, db_session):
    headers = await _admin_headers(db_session)
    customer = ProfileFactory.create(full_name="Ada Obi")
    db_session.add(customer)
    await db_session.commit()
    await _order(
        db_session,
        user_id=customer.id,
        total_usd=Decimal("159.00"),
        payment_status=PaymentStatus.PAID,
    )
    await _order(db_session, user_id=customer.id, total_usd=Decimal("80.00"))

    response = await store_client.get("/admin/store/customers", headers=headers)

    assert response.status_code == 200, response.text
    [row] = response.json()
    assert row["profile"]["full_name"] == "Ada Obi"
    assert row["order_count"] == 2
    assert Decimal(row["total_spent"]) == Decimal("159.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard(store_client, db_session):
    headers = await _admin_headers(db_session)
    db_session.add(ProductFactory.create(inventory_quantity=1, low_stock_threshold=5))
    await db_session.commit()
    await _order(
        db_session,
        total_usd=Decimal("105.00"),
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.PAID,
    )
    await _order(db_session)

    response = await store_client.get("/admin/store/dashboard", headers=headers)

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total_orders"] == 2
    assert Decimal(data["total_revenue"]) == Decimal("105.00")
    assert data["pending_orders"] == 2
    assert data["total_customers"] == 0
    assert data["total_products"] == 1
    assert len(data["recent_orders"]) == 2
    assert len(data["low_stock_products"]) == 1
