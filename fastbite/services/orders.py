# fastbite/services/orders.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from ..schemas import Order, OrderStatus, Pagination
from .client import ApiClient


def can_cancel(order: Order) -> bool:
    """Only orders the shop has not started on can be cancelled by the customer."""
    return order.status == OrderStatus.PENDING


async def create_order(
    api: ApiClient,
    delivery_address_id: int,
    payment_method: str,
    items: List[Dict[str, int]],
    notes: str | None = None,
    coupon_code: str | None = None,
    discount_amount: float | None = None,
) -> Order:
    body: Dict[str, Any] = {
        "deliveryAddressId": delivery_address_id,
        "paymentMethod": getattr(payment_method, "value", payment_method),
        "items": items,
    }
    if notes:
        body["notes"] = notes
    if coupon_code:
        body["couponCode"] = coupon_code
    if discount_amount:
        body["discountAmount"] = discount_amount
    data = await api.post("/orders", json=body, default_error="Could not create order")
    return Order.model_validate(data.get("order"))


async def get_user_orders(api: ApiClient, page: int = 1, limit: int = 10) -> Tuple[List[Order], Pagination]:
    data = await api.get(
        "/orders/my-orders",
        params={"page": page, "limit": limit},
        default_error="Could not load orders",
    )
    orders = [Order.model_validate(o) for o in data.get("orders") or []]
    pagination = Pagination.model_validate(data.get("pagination") or {"page": page, "limit": limit})
    return orders, pagination


async def get_order(api: ApiClient, order_id: int) -> Order:
    data = await api.get(f"/orders/{order_id}", default_error="Could not load order")
    return Order.model_validate(data.get("order"))


async def cancel_order(api: ApiClient, order_id: int) -> Order:
    data = await api.post(f"/orders/{order_id}/cancel", default_error="Could not cancel order")
    return Order.model_validate(data.get("order"))
