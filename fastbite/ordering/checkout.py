# fastbite/ordering/checkout.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import httpx
from pydantic import BaseModel

from ..notices import Notifier, NotifyFn
from ..schemas import CartItem, CouponValidation, Order, PaymentMethod, Promotion
from ..services import orders as order_service
from ..services import payments as payment_service
from ..services import promotions as promotion_service
from ..services.client import ApiClient, ApiError
from ..storage import CURRENT_ORDER_KEY, KeyValueStorage
from .cart import cart_total, to_order_items
from .cart_store import CartManager

logger = logging.getLogger(__name__)

SHIPPING_FEE = 0.0


class Totals(BaseModel):
    subtotal: float
    discount: float
    shipping_fee: float
    total: float


class CheckoutResult(BaseModel):
    order: Order
    redirect_url: Optional[str] = None


def compute_totals(
    items: List[CartItem],
    promotion: Optional[Promotion] = None,
    shipping_fee: float = SHIPPING_FEE,
) -> Totals:
    subtotal = cart_total(items)
    discount = promotion_service.calculate_discount(subtotal, promotion)
    total = max(0.0, subtotal - discount + shipping_fee)
    return Totals(subtotal=subtotal, discount=discount, shipping_fee=shipping_fee, total=total)


class CheckoutFlow:
    """Coupon entry and order placement for the items picked out of the cart."""

    def __init__(
        self,
        api: ApiClient,
        cart: CartManager,
        storage: KeyValueStorage,
        notify: Optional[NotifyFn] = None,
    ):
        self.api = api
        self.cart = cart
        self.storage = storage
        self.notice = Notifier(notify)
        self.coupon: Optional[CouponValidation] = None

    def selected(self, product_ids: Optional[Iterable[int]] = None) -> List[CartItem]:
        if product_ids is None:
            return list(self.cart.items)
        wanted = set(product_ids)
        return [i for i in self.cart.items if i.product_id in wanted]

    def totals(self, product_ids: Optional[Iterable[int]] = None) -> Totals:
        return compute_totals(self.selected(product_ids), self.coupon.promotion if self.coupon else None)

    async def apply_coupon(self, code: str) -> Optional[CouponValidation]:
        if not code.strip():
            self.notice("error", "Enter a coupon code")
            return None
        try:
            self.coupon = await promotion_service.apply_coupon(self.api, code)
        except ApiError as e:
            self.coupon = None
            self.notice("error", "Coupon not applied", e.message)
            return None
        self.notice("success", "Coupon applied", self.coupon.coupon.code)
        return self.coupon

    def remove_coupon(self) -> None:
        self.coupon = None

    async def place_order(
        self,
        address_id: int,
        payment_method: PaymentMethod | str = PaymentMethod.COD,
        product_ids: Optional[Iterable[int]] = None,
        notes: Optional[str] = None,
    ) -> Optional[CheckoutResult]:
        method = PaymentMethod(getattr(payment_method, "value", payment_method))
        items = self.selected(product_ids)
        if not items:
            self.notice("error", "No items selected", "Go back to the cart and pick the items to check out")
            return None
        if not self.api.token():
            self.notice("error", "Not logged in", "Please log in again")
            return None

        totals = self.totals([i.product_id for i in items])
        try:
            order = await order_service.create_order(
                self.api,
                delivery_address_id=address_id,
                payment_method=method.value,
                items=to_order_items(items),
                notes=notes,
                coupon_code=self.coupon.coupon.code if self.coupon else None,
                discount_amount=totals.discount,
            )
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Order creation failed: %s", e)
            self.notice("error", "Order failed", "Could not create the order. Please try again later.")
            return None

        if method != PaymentMethod.COD:
            self.storage.set_item(CURRENT_ORDER_KEY, str(order.id))
            try:
                url = await payment_service.start_payment(self.api, method, order.id)
            except (ApiError, httpx.HTTPError) as e:
                logger.warning("Could not start %s payment for order %s: %s", method.value, order.id, e)
                self.notice("error", "Payment not started", f"Order #{order.id} was created but payment could not start")
                return CheckoutResult(order=order)
            return CheckoutResult(order=order, redirect_url=url)

        await self.cart.remove_many([i.product_id for i in items])
        self.coupon = None
        self.notice("success", "Order placed", f"Order #{order.id}")
        return CheckoutResult(order=order)
