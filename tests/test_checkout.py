from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from fastbite.ordering.cart_store import CartManager
from fastbite.ordering.checkout import CheckoutFlow, compute_totals
from fastbite.schemas import DiscountType, Order, OrderStatus, Product, Promotion
from fastbite.services import orders as order_service
from fastbite.services.client import ApiClient
from fastbite.services.promotions import calculate_discount, is_promotion_active
from fastbite.storage import CURRENT_ORDER_KEY

from conftest import API_URL, product_json

pytestmark = pytest.mark.anyio

COUPON = {
    "coupon": {"code": "SAVE10", "usageLimit": 100, "usageCount": 3},
    "promotion": {"id": 1, "name": "Ten off", "discountType": "percentage", "discountValue": 10},
}


def _promo(kind: str, value: float, **kw) -> Promotion:
    return Promotion(discount_type=DiscountType(kind), discount_value=value, **kw)


# -------------------
# Discounts
# -------------------
def test_calculate_discount():
    assert calculate_discount(200000, _promo("percentage", 10)) == 20000
    assert calculate_discount(200000, _promo("fixed", 30000)) == 30000
    assert calculate_discount(20000, _promo("fixed", 30000)) == 20000
    assert calculate_discount(50000, _promo("percentage", 150)) == 50000
    assert calculate_discount(0, _promo("percentage", 10)) == 0
    assert calculate_discount(50000, None) == 0


def test_promotion_window():
    now = datetime(2030, 6, 1, tzinfo=timezone.utc)
    live = _promo("fixed", 1, start_date=now - timedelta(days=1), end_date=now + timedelta(days=1))
    ended = _promo("fixed", 1, end_date=now - timedelta(seconds=1))
    off = _promo("fixed", 1, is_active=False)
    assert is_promotion_active(live, now)
    assert not is_promotion_active(ended, now)
    assert not is_promotion_active(off, now)


# -------------------
# Checkout
# -------------------
async def _flow(storage, backend, seen):
    api = ApiClient(base_url=API_URL, token_provider=lambda: "tok", transport=backend.transport)
    backend.add("POST", "/cart/add", {"success": True})
    backend.add("DELETE", "/cart/remove/1", {"success": True})
    cart = CartManager(storage, api, user_id=7)
    await cart.add(Product.model_validate(product_json(1, price=100000)), 2)
    await cart.add(Product.model_validate(product_json(2, price=30000)), 1)
    return CheckoutFlow(api, cart, storage, notify=seen.append)


async def test_totals_with_coupon(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    backend.add("POST", "/promotions/apply-coupon", COUPON)

    coupon = await flow.apply_coupon(" save10 ")

    assert coupon.coupon.code == "SAVE10"
    assert backend.body(backend.requests_to("POST", "/apply-coupon")[0]) == {"code": "SAVE10"}
    totals = flow.totals()
    assert (totals.subtotal, totals.discount, totals.total) == (230000, 23000, 207000)
    assert flow.totals([2]).discount == 3000


async def test_invalid_coupon(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    backend.add("POST", "/promotions/apply-coupon", {"message": "Coupon expired"}, status=400)

    assert await flow.apply_coupon("OLD") is None
    assert flow.coupon is None
    assert seen[-1].description == "Coupon expired"


async def test_cod_order_removes_purchased_lines(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    backend.add("POST", "/orders", {"order": {"id": 55, "status": "pending", "paymentMethod": "cod"}})

    result = await flow.place_order(address_id=3, payment_method="cod", product_ids=[1], notes="no onions")

    assert result.order.id == 55
    assert result.redirect_url is None
    body = backend.body(backend.requests_to("POST", "/orders")[0])
    assert body == {
        "deliveryAddressId": 3,
        "paymentMethod": "cod",
        "items": [{"productId": 1, "quantity": 2}],
        "notes": "no onions",
    }
    assert [i.product_id for i in flow.cart.items] == [2]
    assert seen[-1].title == "Order placed"


async def test_online_payment_returns_redirect(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    backend.add("POST", "/orders", {"order": {"id": 56, "status": "pending", "paymentMethod": "momo"}})
    backend.add("POST", "/payments/momo/create-payment", {"payUrl": "https://momo.test/pay/56"})

    result = await flow.place_order(address_id=3, payment_method="momo")

    assert result.redirect_url == "https://momo.test/pay/56"
    assert storage.get_item(CURRENT_ORDER_KEY) == "56"
    assert flow.cart.count == 3


async def test_order_failure_notifies(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    backend.add("POST", "/orders", {"message": "boom"}, status=500)

    assert await flow.place_order(address_id=3) is None
    assert seen[-1].title == "Order failed"


async def test_nothing_selected(storage, backend):
    seen = []
    flow = await _flow(storage, backend, seen)
    assert await flow.place_order(address_id=3, product_ids=[99]) is None
    assert seen[-1].title == "No items selected"


def test_compute_totals_shipping():
    assert compute_totals([], None, shipping_fee=15000).total == 15000


async def test_order_service_cancel_rules(authed_api, backend):
    backend.add("POST", "/orders/9/cancel", {"order": {"id": 9, "status": "cancelled"}})
    order = await order_service.cancel_order(authed_api, 9)
    assert order.status == OrderStatus.CANCELLED
    assert order_service.can_cancel(Order(id=1, status=OrderStatus.PENDING))
    assert not order_service.can_cancel(Order(id=1, status=OrderStatus.SHIPPING))


async def test_user_orders(authed_api, backend):
    backend.add(
        "GET",
        "/orders/my-orders",
        {"orders": [{"id": 1, "status": "delivered"}], "pagination": {"page": 1, "limit": 10, "total": 1, "totalPages": 1}},
    )
    orders, pagination = await order_service.get_user_orders(authed_api)
    assert orders[0].status == OrderStatus.DELIVERED
    assert pagination.total_pages == 1
