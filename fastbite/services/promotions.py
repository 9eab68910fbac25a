# fastbite/services/promotions.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ..schemas import CouponValidation, DiscountType, Promotion
from .client import ApiClient


def calculate_discount(subtotal: float, promotion: Optional[Promotion]) -> float:
    """
    Discount a promotion grants on ``subtotal``; never more than the subtotal.

      percentage V -> min(subtotal * V / 100, subtotal)
      fixed V      -> min(V, subtotal)
    """
    if not promotion or subtotal <= 0:
        return 0.0
    value = max(0.0, float(promotion.discount_value))
    if promotion.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * value / 100
    else:
        discount = value
    return min(discount, subtotal)


def is_promotion_active(promotion: Promotion, now: datetime | None = None) -> bool:
    if not promotion.is_active:
        return False
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    def aware(dt: datetime) -> datetime:
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    if promotion.start_date and aware(promotion.start_date) > now:
        return False
    if promotion.end_date and aware(promotion.end_date) < now:
        return False
    return True


async def get_active_promotions(api: ApiClient) -> List[Promotion]:
    data = await api.get("/promotions/active", auth=False, default_error="Could not load promotions")
    return [Promotion.model_validate(p) for p in data.get("promotions") or []]


async def apply_coupon(api: ApiClient, code: str) -> CouponValidation:
    data = await api.post(
        "/promotions/apply-coupon",
        json={"code": code.strip().upper()},
        default_error="Invalid coupon code",
    )
    return CouponValidation.model_validate(data)
