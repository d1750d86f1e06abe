"""Integration tests for the cart endpoints (guest cookie and signed-in carts)."""

import uuid
from decimal import Decimal

import pytest
from tests.factories import ProductFactory, ProfileFactory, VariantFactory
from tests.fakes import auth_headers

GUEST_COOKIE = "guest_session_id"


async def _product(db, **overrides):
    product = ProductFactory.create(**overrides)
    db.add(product)
    await db.commit()
    return product


def _guest(token):
    return {"Cookie": f"{GUEST_COOKIE}={token}"}


async def _start_guest_cart(client, product_id, quantity=1):
    """Add an item as a new guest and return (response, cookie token)."""
    response = await client.post(
        "/store/cart/items", json={"product_id": str(product_id), "quantity": quantity}
    )
    assert response.status_code == 200, response.text
    token = response.cookies.get(GUEST_COOKIE)
    assert token
    return response, token


# ---------------------------------------------------------------------------
# Guest cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_empty_cart_issues_guest_cookie(store_client, db_session):
    """GET /store/cart: a new guest gets an empty cart and a session cookie."""
    response = await store_client.get("/store/cart")

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == []
    assert data["item_count"] == 0
    assert GUEST_COOKIE in response.cookies


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guest_add_and_read_back(store_client, db_session):
    product = await _product(db_session, price_usd=Decimal("150.00"))

    response, token = await _start_guest_cart(store_client, product.id, quantity=2)
    assert response.json()["item_count"] == 2

    cart = await store_client.get("/store/cart", headers=_guest(token))
    data = cart.json()
    assert len(data["items"]) == 1
    assert Decimal(data["subtotal"]) == Decimal("300.00")
    assert Decimal(data["items"][0]["line_total"]) == Decimal("300.00")
    assert data["items"][0]["product"]["id"] == str(product.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guest_carts_are_isolated(store_client, db_session):
    product = await _product(db_session)
    _, token = await _start_guest_cart(store_client, product.id)

    other = await store_client.get(
        "/store/cart", headers=_guest(f"guest-{uuid.uuid4().hex}")
    )

    assert other.json()["items"] == []
    mine = await store_client.get("/store/cart", headers=_guest(token))
    assert mine.json()["item_count"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_with_variant_uses_adjusted_price(store_client, db_session):
    product = await _product(db_session, price_usd=Decimal("100.00"))
    variant = VariantFactory.create(
        product_id=product.id, price_adjustment_usd=Decimal("15.00")
    )
    db_session.add(variant)
    await db_session.commit()

    response = await store_client.post(
        "/store/cart/items",
        json={"product_id": str(product.id), "variant_id": str(variant.id)},
    )

    assert response.status_code == 200, response.text
    [line] = response.json()["items"]
    assert Decimal(line["unit_price"]) == Decimal("115.00")
    assert line["variant"]["id"] == str(variant.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_inactive_product_is_rejected(store_client, db_session):
    product = await _product(db_session, is_active=False)

    response = await store_client.post(
        "/store/cart/items", json={"product_id": str(product.id)}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "This product is no longer available"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_unknown_product_is_not_found(store_client, db_session):
    response = await store_client.post(
        "/store/cart/items", json={"product_id": str(uuid.uuid4())}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_quantity_and_remove(store_client, db_session):
    product = await _product(db_session)
    response, token = await _start_guest_cart(store_client, product.id)
    item_id = response.json()["items"][0]["id"]

    updated = await store_client.patch(
        f"/store/cart/items/{item_id}", json={"quantity": 4}, headers=_guest(token)
    )
    assert updated.status_code == 200
    assert updated.json()["item_count"] == 4

    removed = await store_client.patch(
        f"/store/cart/items/{item_id}", json={"quantity": 0}, headers=_guest(token)
    )
    assert removed.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_line_and_clear_cart(store_client, db_session):
    first = await _product(db_session)
    second = await _product(db_session)
    response, token = await _start_guest_cart(store_client, first.id)
    await store_client.post(
        "/store/cart/items",
        json={"product_id": str(second.id)},
        headers=_guest(token),
    )
    item_id = response.json()["items"][0]["id"]

    after_delete = await store_client.delete(
        f"/store/cart/items/{item_id}", headers=_guest(token)
    )
    assert after_delete.status_code == 200
    assert len(after_delete.json()["items"]) == 1

    cleared = await store_client.delete("/store/cart", headers=_guest(token))
    assert cleared.status_code == 204

    cart = await store_client.get("/store/cart", headers=_guest(token))
    assert cart.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cannot_edit_another_guests_line(store_client, db_session):
    product = await _product(db_session)
    response, _ = await _start_guest_cart(store_client, product.id)
    item_id = response.json()["items"][0]["id"]

    stranger = _guest(f"guest-{uuid.uuid4().hex}")
    result = await store_client.patch(
        f"/store/cart/items/{item_id}", json={"quantity": 3}, headers=stranger
    )

    assert result.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_validate_reports_stock_shortfall(store_client, db_session):
    product = await _product(db_session, inventory_quantity=5)
    _, token = await _start_guest_cart(store_client, product.id, quantity=3)

    product.inventory_quantity = 1
    await db_session.commit()

    response = await store_client.get("/store/cart/validate", headers=_guest(token))

    assert response.status_code == 200
    [result] = response.json()
    assert result["valid"] is False
    assert result["message"] == "Only 1 in stock"


# ---------------------------------------------------------------------------
# Signed-in cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signed_in_cart_belongs_to_user(store_client, db_session):
    product = await _product(db_session)
    profile = ProfileFactory.create()
    db_session.add(profile)
    await db_session.commit()
    headers = auth_headers(str(profile.id))

    response = await store_client.post(
        "/store/cart/items", json={"product_id": str(product.id)}, headers=headers
    )
    assert response.status_code == 200
    assert GUEST_COOKIE not in response.cookies

    cart = await store_client.get("/store/cart", headers=headers)
    assert cart.json()["item_count"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_merge_moves_guest_lines_to_user(store_client, db_session):
    """POST /store/cart/merge: guest rows become the user's and the cookie is dropped."""
    product = await _product(db_session)
    profile = ProfileFactory.create()
    db_session.add(profile)
    await db_session.commit()
    _, token = await _start_guest_cart(store_client, product.id, quantity=2)

    headers = {**auth_headers(str(profile.id)), **_guest(token)}
    response = await store_client.post("/store/cart/merge", headers=headers)

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["merged"] == 1
    assert data["cart"]["item_count"] == 2

    user_cart = await store_client.get(
        "/store/cart", headers=auth_headers(str(profile.id))
    )
    assert user_cart.json()["item_count"] == 2

    guest_cart = await store_client.get("/store/cart", headers=_guest(token))
    assert guest_cart.json()["items"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_merge_requires_authentication(store_client, db_session):
    response = await store_client.post("/store/cart/merge")

    assert response.status_code in (401, 403)
