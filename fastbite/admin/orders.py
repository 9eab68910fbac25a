# fastbite/admin/orders.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..schemas import Order, Pagination
from ..services.client import ApiClient


def _order(data: Any) -> Order:
    return Order.model_validate(data.get("data") if isinstance(data, dict) else data)


async def get_orders(
    api: ApiClient,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
) -> Tuple[List[Order], Optional[Pagination]]:
    data = await api.get(
        "/admin/orders",
        params={"page": page, "limit": limit, "status": status},
        default_error="Failed to fetch orders",
    )
    orders = [Order.model_validate(o) for o in data.get("orders") or data.get("data") or []]
    pagination = Pagination.model_validate(data["pagination"]) if data.get("pagination") else None
    return orders, pagination


async def get_order(api: ApiClient, order_id: int) -> Order:
    return _order(await api.get(f"/admin/orders/{order_id}", default_error="Failed to fetch order details"))


async def _transition(api: ApiClient, order_id: int, action: str, error: str, body: Dict[str, Any] | None = None) -> Order:
    return _order(await api.post(f"/admin/orders/{order_id}/{action}", json=body, default_error=error))


async def approve_order(api: ApiClient, order_id: int) -> Order:
    return await _transition(api, order_id, "approve", "Failed to approve order")


async def reject_order(api: ApiClient, order_id: int, reason: str) -> Order:
    if not reason.strip():
        raise ValueError("A rejection reason is required")
    return await _transition(api, order_id, "reject", "Failed to reject order", {"reason": reason.strip()})


async def ship_order(api: ApiClient, order_id: int) -> Order:
    return await _transition(api, order_id, "ship", "Failed to ship order")


async def mark_delivered(api: ApiClient, order_id: int) -> Order:
    return await _transition(api, order_id, "delivered", "Failed to mark order as delivered")
