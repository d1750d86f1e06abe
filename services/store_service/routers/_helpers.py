"""Shared helpers for store routers."""

from services.store_service.schemas import CartLineResponse, CartResponse
from services.store_service.services.cart_state import CartLine, CartState


def cart_line_response(line: CartLine) -> CartLineResponse:
    return CartLineResponse(
        id=line.id,
        quantity=line.quantity,
        unit_price=line.unit_price,
        line_total=line.line_total,
        product=line.product,
        variant=line.variant,
    )


def cart_response(cart: CartState) -> CartResponse:
    totals = cart.get_cart_totals()
    return CartResponse(
        items=[cart_line_response(line) for line in totals.items],
        subtotal=totals.subtotal,
        item_count=totals.item_count,
    )
