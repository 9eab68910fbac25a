# fastbite/admin/coupons.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional, Sequence, Tuple

from ..schemas import Coupon, Pagination
from ..services.client import ApiClient, ApiError
from ..utils import format_price
from .client import delete_each
from .forms import CouponForm

logger = logging.getLogger(__name__)

ACTIVE = "active"
EXPIRED = "expired"
USED = "used"


def coupon_status(coupon: Coupon, today: date | None = None) -> str:
    """``expired`` past the expiry date, ``used`` once max uses are reached, else ``active``."""
    today = today or date.today()
    if coupon.expiry and coupon.expiry.date() < today:
        return EXPIRED
    if coupon.max_uses and coupon.current_uses >= coupon.max_uses:
        return USED
    return ACTIVE


def format_discount(coupon: Coupon) -> str:
    if coupon.discount_type.value == "percentage":
        return f"{coupon.discount_value:g}%"
    return format_price(coupon.discount_value)


def filter_coupons(coupons: List[Coupon], search: str = "", kind: str = "all", today: date | None = None) -> List[Coupon]:
    """Dashboard filter: ``kind`` is all, a status, or a discount type."""
    needle = search.strip().lower()
    out = []
    for c in coupons:
        if needle and needle not in c.code.lower():
            continue
        if kind in (ACTIVE, EXPIRED, USED) and coupon_status(c, today) != kind:
            continue
        if kind in ("percentage", "fixed") and c.discount_type.value != kind:
            continue
        out.append(c)
    return out


def _coupon(data: Any) -> Optional[Coupon]:
    raw = (data.get("data") or data.get("coupon")) if isinstance(data, dict) else None
    if not raw:
        return None
    coupon = Coupon.model_validate(raw)
    coupon.status = coupon_status(coupon)
    return coupon


async def get_coupons(api: ApiClient, **params: Any) -> Tuple[List[Coupon], Optional[Pagination]]:
    data = await api.get("/coupons", params=params, default_error="Could not load coupons")
    coupons = [Coupon.model_validate(c) for c in data.get("data") or []]
    for c in coupons:
        c.status = coupon_status(c)
    pagination = Pagination.model_validate(data["pagination"]) if data.get("pagination") else None
    return coupons, pagination


async def get_coupon(api: ApiClient, coupon_id: int | str) -> Optional[Coupon]:
    data = await api.get(f"/coupons/{coupon_id}", default_error=f"Could not load coupon {coupon_id}")
    return _coupon(data)


async def create_coupon(api: ApiClient, form: CouponForm) -> Optional[Coupon]:
    data = await api.post("/coupons", data=form.to_fields(), default_error="Could not create coupon")
    return _coupon(data)


async def update_coupon(api: ApiClient, coupon_id: int | str, form: CouponForm) -> Optional[Coupon]:
    data = await api.put(f"/coupons/{coupon_id}", data=form.to_fields(), default_error="Could not update coupon")
    return _coupon(data)


async def delete_coupon(api: ApiClient, coupon_id: int | str) -> bool:
    try:
        await api.delete(f"/coupons/{coupon_id}", default_error="Could not delete coupon")
    except ApiError as e:
        logger.warning("Deleting coupon %s failed: %s", coupon_id, e)
        return False
    return True


async def delete_coupons(api: ApiClient, ids: Sequence[int | str]) -> Tuple[int, int]:
    return await delete_each(delete_coupon, api, ids)
