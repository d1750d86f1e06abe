"""Unit tests for OrderAdminService and the order filters."""

from decimal import Decimal

import pytest
from services.store_service.errors import OrderStateError
from services.store_service.models import OrderStatus, PaymentStatus
from services.store_service.services.order_admin import (
    OrderAdminService,
    OrderFilters,
    filter_orders,
)
from tests.factories import OrderFactory, OrderItemFactory, ProductFactory, ProfileFactory
from tests.fakes import FakeEmailClient

# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def _orders():
    return [
        OrderFactory.create(
            order_number="SXO6-20260301-AAAAA",
            customer_name="Ada Obi",
            customer_email="ada@test.com",
            status=OrderStatus.PROCESSING,
            payment_status=PaymentStatus.PAID,
        ),
        OrderFactory.create(
            order_number="SXO6-20260302-BBBBB",
            customer_name="Jane Doe",
            customer_email="jane@shop.com",
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        ),
    ]


@pytest.mark.unit
def test_filter_orders_by_search_is_case_insensitive():
    orders = _orders()
    assert filter_orders(orders, OrderFilters(search="ADA")) == [orders[0]]
    assert filter_orders(orders, OrderFilters(search="bbbbb")) == [orders[1]]
    assert filter_orders(orders, OrderFilters(search="shop.com")) == [orders[1]]


@pytest.mark.unit
def test_filter_orders_by_statuses():
    orders = _orders()
    assert filter_orders(orders, OrderFilters(status=OrderStatus.PENDING)) == [
        orders[1]
    ]
    assert filter_orders(
        orders, OrderFilters(payment_status=PaymentStatus.PAID)
    ) == [orders[0]]
    assert (
        filter_orders(
            orders,
            OrderFilters(search="ada", payment_status=PaymentStatus.PENDING),
        )
        == []
    )


@pytest.mark.unit
def test_empty_filters_keep_everything():
    orders = _orders()
    assert filter_orders(orders, OrderFilters(search="  ")) == orders


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


async def _order(db, **overrides):
    order = OrderFactory.create(**overrides)
    db.add(order)
    await db.flush()
    db.add(OrderItemFactory.create(order_id=order.id))
    await db.commit()
    return order


@pytest.mark.asyncio
@pytest.mark.unit
async def test_shipping_sets_timestamp_once_and_notifies(db_session):
    order = await _order(db_session, status=OrderStatus.PROCESSING)
    email_client = FakeEmailClient()
    service = OrderAdminService(db_session, email_client)

    shipped = await service.update_status(order.id, OrderStatus.SHIPPED)
    first_shipped_at = shipped.shipped_at
    assert first_shipped_at is not None
    assert email_client.types() == ["order_shipped"]

    await service.update_status(order.id, OrderStatus.PROCESSING)
    again = await service.update_status(order.id, OrderStatus.SHIPPED)

    assert again.shipped_at == first_shipped_at
    assert email_client.types() == ["order_shipped", "order_shipped"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_status_does_not_notify(db_session):
    order = await _order(db_session, status=OrderStatus.SHIPPED)
    email_client = FakeEmailClient()

    await OrderAdminService(db_session, email_client).update_status(
        order.id, OrderStatus.SHIPPED
    )

    assert email_client.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delivered_and_cancelled_notify(db_session):
    delivered = await _order(db_session, status=OrderStatus.SHIPPED)
    cancelled = await _order(db_session)
    email_client = FakeEmailClient()
    service = OrderAdminService(db_session, email_client)

    result = await service.update_status(delivered.id, OrderStatus.DELIVERED)
    await service.update_status(cancelled.id, OrderStatus.CANCELLED)

    assert result.delivered_at is not None
    assert email_client.types() == ["order_delivered", "order_cancelled"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_processing_does_not_notify(db_session):
    order = await _order(db_session)
    email_client = FakeEmailClient()

    await OrderAdminService(db_session, email_client).update_status(
        order.id, OrderStatus.PROCESSING
    )

    assert email_client.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_email_failure_does_not_undo_status(db_session):
    order = await _order(db_session, status=OrderStatus.PROCESSING)
    service = OrderAdminService(db_session, FakeEmailClient(succeed=False))

    result = await service.update_status(order.id, OrderStatus.SHIPPED)

    assert result.status == OrderStatus.SHIPPED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_tracking_number_marks_order_shipped(db_session):
    order = await _order(db_session, status=OrderStatus.PROCESSING)
    email_client = FakeEmailClient()
    service = OrderAdminService(db_session, email_client)

    result = await service.update_tracking(order.id, "DHL-1234567")

    assert result.tracking_number == "DHL-1234567"
    assert result.status == OrderStatus.SHIPPED
    assert result.shipped_at is not None
    assert email_client.types() == ["order_shipped"]
    assert email_client.sent[0][1]["tracking_number"] == "DHL-1234567"

    # Correcting the number does not email again
    await service.update_tracking(order.id, "DHL-7654321")
    assert email_client.types() == ["order_shipped"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_notes(db_session):
    order = await _order(db_session)

    result = await OrderAdminService(db_session).update_notes(
        order.id, "Gift wrap requested"
    )

    assert result.notes == "Gift wrap requested"


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "status", [OrderStatus.PENDING, OrderStatus.SHIPPED, OrderStatus.CANCELLED]
)
async def test_delivered_order_status_is_locked(db_session, status):
    order = await _order(db_session, status=OrderStatus.DELIVERED)
    email_client = FakeEmailClient()
    service = OrderAdminService(db_session, email_client)

    with pytest.raises(OrderStateError):
        await service.update_status(order.id, status)

    unchanged = await service.get_order(order.id)
    assert unchanged.status == OrderStatus.DELIVERED
    assert email_client.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_tracking_on_delivered_order_keeps_status(db_session):
    order = await _order(db_session, status=OrderStatus.DELIVERED)
    email_client = FakeEmailClient()

    result = await OrderAdminService(db_session, email_client).update_tracking(
        order.id, "TRK123"
    )

    assert result.tracking_number == "TRK123"
    assert result.status == OrderStatus.DELIVERED
    assert result.shipped_at is None
    assert email_client.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notes_on_delivered_order_are_rejected(db_session):
    order = await _order(db_session, status=OrderStatus.DELIVERED)

    with pytest.raises(OrderStateError):
        await OrderAdminService(db_session).update_notes(order.id, "Late note")


# ---------------------------------------------------------------------------
# Customers and dashboard
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_customers_exclude_admins_and_sum_paid_orders(db_session):
    customer = ProfileFactory.create(full_name="Ada Obi")
    admin = ProfileFactory.create(is_admin=True)
    db_session.add_all([customer, admin])
    await db_session.commit()

    await _order(
        db_session,
        user_id=customer.id,
        total_usd=Decimal("159.00"),
        payment_status=PaymentStatus.PAID,
    )
    await _order(
        db_session,
        user_id=customer.id,
        total_usd=Decimal("41.00"),
        payment_status=PaymentStatus.PAID,
    )
    await _order(db_session, user_id=customer.id, total_usd=Decimal("500.00"))

    summaries = await OrderAdminService(db_session).list_customers()

    assert [s.profile.id for s in summaries] == [customer.id]
    assert summaries[0].order_count == 3
    assert summaries[0].total_spent == Decimal("200.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_dashboard_counts(db_session):
    db_session.add_all(
        [
            ProfileFactory.create(),
            ProfileFactory.create(is_admin=True),
            ProductFactory.create(inventory_quantity=2, low_stock_threshold=5),
            ProductFactory.create(inventory_quantity=50),
        ]
    )
    await db_session.commit()
    await _order(
        db_session,
        status=OrderStatus.PROCESSING,
        payment_status=PaymentStatus.PAID,
        total_usd=Decimal("105.00"),
    )
    await _order(db_session)
    await _order(db_session, status=OrderStatus.DELIVERED, payment_status=PaymentStatus.PAID)

    stats = await OrderAdminService(db_session).dashboard()

    assert stats.total_orders == 3
    assert stats.total_revenue == Decimal("210.00")
    assert stats.pending_orders == 2
    assert stats.total_customers == 1
    assert stats.total_products == 2
    assert len(stats.recent_orders) == 3
    assert [p.inventory_quantity for p in stats.low_stock_products] == [2]
