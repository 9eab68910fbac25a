from __future__ import annotations

import pytest

from fastbite.ordering.cart import (
    build_summary,
    clamp_quantity,
    load_cart,
    merge_line,
    set_quantity,
    to_order_items,
)
from fastbite.ordering.cart_store import CartManager
from fastbite.schemas import Product
from fastbite.services.client import ApiClient
from fastbite.storage import GUEST_CART_KEY

from conftest import API_URL, make_token, product_json

pytestmark = pytest.mark.anyio


def _product(product_id: int = 1, **kw) -> Product:
    return Product.model_validate(product_json(product_id, **kw))


# -------------------
# Pure helpers
# -------------------
def test_clamp_quantity():
    assert clamp_quantity(5, 3) == (3, True)
    assert clamp_quantity(2, 0) == (0, True)
    assert clamp_quantity(2, 5) == (2, False)
    assert clamp_quantity(-1, 5) == (0, False)


def test_merge_line_merges_and_keeps_position():
    items, _ = merge_line([], _product(1), 1)
    items, _ = merge_line(items, _product(2), 1)
    items, clamped = merge_line(items, _product(1), 2)
    assert [i.product_id for i in items] == [1, 2]
    assert items[0].quantity == 3
    assert not clamped


def test_merge_line_clamps_to_stock():
    items, clamped = merge_line([], _product(1, stock=2), 5)
    assert items[0].quantity == 2
    assert clamped


def test_set_quantity_zero_removes():
    items, _ = merge_line([], _product(1), 2)
    items, _ = set_quantity(items, 1, 0)
    assert items == []


def test_load_cart_skips_bad_lines():
    raw = [{"product": {"id": 1, "name": "A", "price": 10}, "quantity": 1}, {"nonsense": True}, "x"]
    assert [i.product_id for i in load_cart(raw)] == [1]
    assert load_cart({"not": "a list"}) == []


def test_summary_and_order_items():
    items, _ = merge_line([], _product(1, price=25000), 2)
    text, total = build_summary(items)
    assert total == 50000
    assert "x2 Burger 1 = 50.000 ₫" in text
    assert to_order_items(items) == [{"productId": 1, "quantity": 2}]
    assert build_summary([]) == ("Your cart is empty.", 0.0)


# -------------------
# CartManager
# -------------------
async def test_guest_cart_is_local_only(storage, api, backend):
    seen = []
    cart = CartManager(storage, api, notify=seen.append)

    assert await cart.add(_product(1), 2)
    assert backend.calls == []
    assert storage.get_json(GUEST_CART_KEY)[0]["quantity"] == 2
    assert seen[-1].title == "Added to cart"


async def test_out_of_stock_is_refused(storage, api):
    seen = []
    cart = CartManager(storage, api, notify=seen.append)
    assert not await cart.add(_product(1, stock=0))
    assert cart.items == []
    assert seen[-1].title == "Out of stock"


async def test_add_clamps_and_sends_delta(storage, backend):
    token = make_token(7)
    api = ApiClient(base_url=API_URL, token_provider=lambda: token, transport=backend.transport)
    backend.add("POST", "/cart/add", {"success": True})
    seen = []
    cart = CartManager(storage, api, user_id=7, notify=seen.append)

    await cart.add(_product(1, stock=3), 2)
    await cart.add(_product(1, stock=3), 5)

    bodies = [backend.body(r) for r in backend.requests_to("POST", "/cart/add")]
    assert bodies == [{"productId": 1, "quantity": 2}, {"productId": 1, "quantity": 1}]
    assert cart.count == 3
    assert "Not enough stock" in [n.title for n in seen]
    assert storage.get_json("cart_7")[0]["quantity"] == 3


async def test_server_error_leaves_cart_unchanged(storage, backend):
    api = ApiClient(base_url=API_URL, token_provider=lambda: "tok", transport=backend.transport)
    backend.add("POST", "/cart/add", {"message": "Product unavailable"}, status=400)
    seen = []
    cart = CartManager(storage, api, user_id=7, notify=seen.append)

    assert not await cart.add(_product(1))
    assert cart.items == []
    assert seen[-1].title == "Cart not updated"
    assert seen[-1].description == "Product unavailable"


async def test_offline_write_is_kept_locally(storage, backend):
    api = ApiClient(base_url=API_URL, token_provider=lambda: "tok", transport=backend.transport)
    backend.fail("POST", "/cart/add")
    cart = CartManager(storage, api, user_id=7)

    assert await cart.add(_product(1))
    assert cart.count == 1
    assert storage.get_json("cart_7")


async def test_update_and_remove(storage, api):
    cart = CartManager(storage, api)
    await cart.add(_product(1, stock=4), 1)

    assert await cart.update_quantity(1, 10)
    assert cart.items[0].quantity == 4
    assert not await cart.update_quantity(1, 4)

    assert await cart.update_quantity(1, 0)
    assert cart.items == []
    assert not await cart.remove(1)


async def test_load_falls_back_to_cache(storage, backend):
    api = ApiClient(base_url=API_URL, token_provider=lambda: "tok", transport=backend.transport)
    storage.set_json("cart_7", [{"product": {"id": 5, "name": "Cola", "price": 15000, "stock": 9}, "quantity": 1}])
    backend.fail("GET", "/cart")
    cart = CartManager(storage, api, user_id=7)

    items = await cart.load()
    assert [i.product_id for i in items] == [5]


async def test_merge_guest_cart_failure_keeps_guest_copy(storage, backend):
    api = ApiClient(base_url=API_URL, token_provider=lambda: "tok", transport=backend.transport)
    backend.add("POST", "/cart/sync", {"message": "nope"}, status=500)
    storage.set_json(GUEST_CART_KEY, [{"product": {"id": 1, "name": "A", "price": 1, "stock": 3}, "quantity": 1}])
    cart = CartManager(storage, api, user_id=7)

    assert not await cart.merge_guest_cart()
    assert storage.get_json(GUEST_CART_KEY)


async def test_clear(storage, api):
    cart = CartManager(storage, api)
    await cart.add(_product(1))
    assert await cart.clear()
    assert cart.items == []
    assert storage.get_item(GUEST_CART_KEY) is None
