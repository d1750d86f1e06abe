"""
Order notification templates.

Each renderer takes the serialized order posted to the send-email function
and returns ``(subject, html)``.
"""

from html import escape
from typing import Any, Callable

from libs.common.datetime_utils import format_date
from services.communications_service.models import OrderEmailType
from services.communications_service.templates.base import (
    DISCOUNT_GREEN,
    amount,
    cta_button,
    detail_box,
    frontend_url,
    money,
    wrap_html,
)

Rendered = tuple[str, str]

CELL = "padding: 15px; border-bottom: 1px solid #eee;"
HEAD_CELL = "padding: 15px; border-bottom: 2px solid #ddd;"


def _greeting(order: dict[str, Any]) -> str:
    name = escape(order.get("customer_name") or "Customer")
    return f"<p>Hi {name},</p>"


def _order_link(order: dict[str, Any]) -> str:
    return frontend_url(f"/account/orders/{order.get('id', '')}")


def _item_rows(items: list[dict[str, Any]]) -> str:
    rows = []
    for item in items:
        details = []
        if item.get("variant_size"):
            details.append(f"Size: {escape(item['variant_size'])}")
        if item.get("variant_color"):
            details.append(f"Color: {escape(item['variant_color'])}")
        rows.append(
            "<tr>"
            f'<td style="{CELL}"><strong>{escape(item.get("product_name", ""))}'
            f"</strong><br/>{' &bull; '.join(details)}</td>"
            f'<td style="{CELL} text-align: center;">{item.get("quantity", 0)}</td>'
            f'<td style="{CELL} text-align: right;">'
            f'{money(item.get("subtotal_usd"))}</td>'
            "</tr>"
        )
    return "".join(rows)


def _items_table(items: list[dict[str, Any]]) -> str:
    return (
        '<table style="width: 100%; border-collapse: collapse; margin: 20px 0; '
        'background: #fff;"><thead><tr style="background: #f5f5f5;">'
        f'<th style="{HEAD_CELL} text-align: left;">Item</th>'
        f'<th style="{HEAD_CELL} text-align: center;">Qty</th>'
        f'<th style="{HEAD_CELL} text-align: right;">Price</th>'
        f"</tr></thead><tbody>{_item_rows(items)}</tbody></table>"
    )


def _totals_box(order: dict[str, Any]) -> str:
    rows = [
        ("Subtotal:", money(order.get("subtotal_usd")), ""),
        ("Shipping:", money(order.get("shipping_usd")), ""),
    ]
    discount = amount(order.get("discount_usd"))
    if discount > 0:
        rows.append(("Discount:", f"-{money(discount)}", f"color: {DISCOUNT_GREEN};"))

    body = "".join(
        f'<tr><td style="padding: 5px; {style}">{label}</td>'
        f'<td style="padding: 5px; text-align: right; {style}">{value}</td></tr>'
        for label, value, style in rows
    )
    body += (
        '<tr style="border-top: 2px solid #000;">'
        '<td style="padding: 10px 5px; font-size: 18px;"><strong>Total:</strong></td>'
        '<td style="padding: 10px 5px; text-align: right; font-size: 18px;">'
        f'<strong>{money(order.get("total_usd"))}</strong></td></tr>'
    )
    return (
        '<div style="background: #fff; padding: 20px; margin: 20px 0; '
        f'border: 1px solid #eee;"><table style="width: 100%;">{body}</table></div>'
    )


# ============================================================================
# TEMPLATES
# ============================================================================


def render_order_confirmation(order: dict[str, Any]) -> Rendered:
    """Itemised receipt with totals and a link to the order page."""
    subject = f"Order Confirmed - {order.get('order_number')}"
    body = (
        _greeting(order)
        + "<p>We've received your order and it is now in progress.</p>"
        + detail_box(
            {
                "Order Number": order.get("order_number"),
                "Order Date": format_date(order.get("created_at")),
            }
        )
        + _items_table(order.get("items") or [])
        + _totals_box(order)
        + cta_button("View Order Details", _order_link(order))
    )
    html = wrap_html(
        "Thank You for Your Order!",
        body,
        preheader=f"Order {order.get('order_number')} confirmed",
    )
    return subject, html


def render_order_shipped(order: dict[str, Any]) -> Rendered:
    subject = f"Order Shipped - {order.get('order_number')}"
    body = (
        _greeting(order)
        + "<p>Great news! Your order is on its way to you.</p>"
        + detail_box(
            {
                "Order Number": order.get("order_number"),
                "Tracking Number": escape(order.get("tracking_number") or ""),
            }
        )
        + cta_button("Track Your Order", _order_link(order))
    )
    return subject, wrap_html("Your Order Has Shipped!", body)


def render_order_delivered(order: dict[str, Any]) -> Rendered:
    subject = f"Order Delivered - {order.get('order_number')}"
    body = (
        _greeting(order)
        + "<p>Your order has been successfully delivered. We hope you love it!</p>"
        + detail_box({"Order Number": order.get("order_number")})
        + cta_button("Continue Shopping", frontend_url("/shop"))
    )
    return subject, wrap_html("Your Order Has Been Delivered!", body)


def render_order_cancelled(order: dict[str, Any]) -> Rendered:
    subject = f"Order Cancelled - {order.get('order_number')}"
    body = (
        _greeting(order)
        + "<p>Your order has been cancelled.</p>"
        + detail_box({"Order Number": order.get("order_number")})
        + cta_button("Continue Shopping", frontend_url("/shop"))
    )
    return subject, wrap_html("Order Cancelled", body)


TEMPLATES: dict[OrderEmailType, Callable[[dict[str, Any]], Rendered]] = {
    OrderEmailType.ORDER_CONFIRMATION: render_order_confirmation,
    OrderEmailType.ORDER_SHIPPED: render_order_shipped,
    OrderEmailType.ORDER_DELIVERED: render_order_delivered,
    OrderEmailType.ORDER_CANCELLED: render_order_cancelled,
}


def render_order_email(email_type: OrderEmailType, order: dict[str, Any]) -> Rendered:
    return TEMPLATES[email_type](order)
