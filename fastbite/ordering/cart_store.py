# fastbite/ordering/cart_store.py
"""
The customer's cart, cached in local storage and mirrored to the backend when
logged in.

Writes go to the server first. If the server cannot be reached the change is
kept locally only, so local and remote carts may diverge until the next
``load()``. If the server answers with an error the cart is left unchanged.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from ..notices import Notifier, NotifyFn
from ..schemas import CartItem, Product
from ..services.client import ApiClient, ApiError
from ..storage import GUEST_CART_KEY, KeyValueStorage, cart_key
from .cart import (
    cart_count,
    cart_total,
    dump_cart,
    find_line,
    load_cart,
    merge_line,
    remove_line,
    set_quantity,
    to_order_items,
)

logger = logging.getLogger(__name__)


class CartManager:
    def __init__(
        self,
        storage: KeyValueStorage,
        api: ApiClient,
        user_id: Optional[int] = None,
        notify: Optional[NotifyFn] = None,
    ):
        self.storage = storage
        self.api = api
        self.user_id = user_id
        self.notice = Notifier(notify)
        self.items: List[CartItem] = load_cart(storage.get_json(self.key, []))

    @property
    def key(self) -> str:
        return cart_key(self.user_id)

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None and bool(self.api.token())

    @property
    def total(self) -> float:
        return cart_total(self.items)

    @property
    def count(self) -> int:
        return cart_count(self.items)

    def _save(self) -> None:
        self.storage.set_json(self.key, dump_cart(self.items))

    def set_user(self, user_id: Optional[int]) -> None:
        self.user_id = user_id
        self.items = load_cart(self.storage.get_json(self.key, []))

    async def _remote(self, method: str, path: str, **kwargs) -> Optional[bool]:
        """True on success, None when offline (keep the local change), False on a server error."""
        if not self.authenticated:
            return True
        try:
            await self.api.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("Cart %s %s unreachable, keeping change locally: %s", method, path, e)
            return None
        except ApiError as e:
            self.notice("error", "Cart not updated", e.message)
            return False
        return True

    # -------------------
    # Operations
    # -------------------
    async def load(self) -> List[CartItem]:
        if self.authenticated:
            try:
                data = await self.api.get("/cart", default_error="Could not load cart")
            except (ApiError, httpx.HTTPError) as e:
                logger.warning("Using cached cart for user %s: %s", self.user_id, e)
            else:
                self.items = load_cart(data.get("data") if isinstance(data, dict) else None)
                self._save()
                return self.items
        self.items = load_cart(self.storage.get_json(self.key, []))
        return self.items

    async def add(self, product: Product, quantity: int = 1) -> bool:
        if product.stock <= 0:
            self.notice("error", "Out of stock", f"{product.name} is currently unavailable")
            return False

        existing = find_line(self.items, product.id)
        before = existing.quantity if existing else 0
        items, clamped = merge_line(self.items, product, quantity)
        after = find_line(items, product.id)
        delta = (after.quantity if after else 0) - before

        if clamped:
            self.notice("warning", "Not enough stock", f"Only {product.stock} of {product.name} available")
        if delta <= 0:
            return False

        ok = await self._remote(
            "POST",
            "/cart/add",
            json={"productId": product.id, "quantity": delta},
            default_error="Could not add to cart",
        )
        if ok is False:
            return False

        self.items = items
        self._save()
        self.notice("success", "Added to cart", f"{product.name} was added to your cart")
        return True

    async def update_quantity(self, product_id: int, quantity: int) -> bool:
        if quantity <= 0:
            return await self.remove(product_id)
        line = find_line(self.items, product_id)
        if line is None:
            return False

        items, clamped = set_quantity(self.items, product_id, quantity)
        if clamped:
            self.notice("warning", "Not enough stock", f"Only {line.product.stock} of {line.product.name} available")
        updated = find_line(items, product_id)
        new_qty = updated.quantity if updated else 0
        if new_qty == line.quantity:
            return False
        if new_qty <= 0:
            return await self.remove(product_id)

        ok = await self._remote(
            "PUT",
            "/cart/update",
            json={"productId": product_id, "quantity": new_qty},
            default_error="Could not update cart",
        )
        if ok is False:
            return False
        self.items = items
        self._save()
        return True

    async def remove(self, product_id: int) -> bool:
        if find_line(self.items, product_id) is None:
            return False
        ok = await self._remote("DELETE", f"/cart/remove/{product_id}", default_error="Could not remove item")
        if ok is False:
            return False
        self.items = remove_line(self.items, product_id)
        self._save()
        self.notice("info", "Removed from cart", "The item was removed from your cart")
        return True

    async def remove_many(self, product_ids: List[int]) -> None:
        for product_id in product_ids:
            await self.remove(product_id)

    async def clear(self) -> bool:
        ok = await self._remote("DELETE", "/cart/clear", default_error="Could not clear cart")
        if ok is False:
            return False
        self.items = []
        self.storage.remove_item(self.key)
        return True

    async def merge_guest_cart(self) -> bool:
        """
        Push the guest cart to the server after login. On success the guest
        copy is dropped and the server cart reloaded; on failure it is kept.
        """
        guest = load_cart(self.storage.get_json(GUEST_CART_KEY, []))
        if not guest:
            return True
        if not self.authenticated:
            return False
        try:
            data = await self.api.post(
                "/cart/sync",
                json={"items": to_order_items(guest)},
                default_error="Could not sync cart",
            )
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Guest cart sync failed, keeping %d lines: %s", len(guest), e)
            return False
        if isinstance(data, dict) and data.get("success") is False:
            logger.warning("Backend rejected guest cart sync: %s", data.get("message"))
            return False

        self.storage.remove_item(GUEST_CART_KEY)
        await self.load()
        return True
