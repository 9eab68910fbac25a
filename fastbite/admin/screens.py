# fastbite/admin/screens.py
"""
State behind the admin list pages (products, banners, coupons).

A screen holds one page of records and the ids the operator ticked. Deletes
update the local list as soon as the backend confirms them, without a refetch.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, Set, Tuple, TypeVar

import httpx

from ..notices import Notifier, NotifyFn
from ..schemas import Pagination
from ..services.client import ApiClient, ApiError
from . import banners, coupons, products

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetch = Callable[..., Awaitable[Tuple[List[T], Optional[Pagination]]]]
Delete = Callable[[ApiClient, Any], Awaitable[bool]]


class ListScreen(Generic[T]):
    def __init__(
        self,
        api: ApiClient,
        label: str,
        fetch: Fetch,
        delete: Delete,
        notify: Optional[NotifyFn] = None,
        limit: int = 10,
    ):
        self.api = api
        self.label = label
        self._fetch = fetch
        self._delete = delete
        self.notice = Notifier(notify)
        self.limit = limit

        self.items: List[T] = []
        self.pagination: Optional[Pagination] = None
        self.selected: Set[Any] = set()
        self.error: Optional[str] = None

    # -------------------
    # Loading
    # -------------------
    async def load(self, page: int = 1, **filters: Any) -> List[T]:
        try:
            items, pagination = await self._fetch(self.api, page=page, limit=self.limit, **filters)
        except (ApiError, httpx.HTTPError) as e:
            self.error = getattr(e, "message", None) or f"Could not load {self.label}"
            self.notice("error", f"Could not load {self.label}", self.error)
            return self.items
        self.error = None
        self.items = list(items)
        self.pagination = pagination
        # a ticked id that is no longer on the page cannot be deleted from here
        self.selected &= {self._id(i) for i in self.items}
        return self.items

    @staticmethod
    def _id(item: Any) -> Any:
        return getattr(item, "id", None)

    # -------------------
    # Selection
    # -------------------
    def toggle(self, item_id: Any) -> None:
        if item_id in self.selected:
            self.selected.discard(item_id)
        else:
            self.selected.add(item_id)

    def toggle_all(self) -> None:
        ids = {self._id(i) for i in self.items}
        self.selected = set() if ids and ids <= self.selected else ids

    # -------------------
    # Deleting
    # -------------------
    async def delete(self, item_id: Any) -> bool:
        ok = await self._delete(self.api, item_id)
        if not ok:
            self.notice("error", "Delete failed", f"Could not delete {self.label} #{item_id}")
            return False
        self.items = [i for i in self.items if self._id(i) != item_id]
        self.selected.discard(item_id)
        self.notice("success", "Deleted", f"Deleted {self.label} #{item_id}")
        return True

    async def delete_selected(self) -> Tuple[int, int]:
        if not self.selected:
            self.notice("warning", "Nothing selected", f"Select at least one {self.label} to delete")
            return 0, 0

        removed: List[Any] = []
        failed = 0
        for item_id in sorted(self.selected, key=str):
            if await self._delete(self.api, item_id):
                removed.append(item_id)
            else:
                failed += 1

        self.items = [i for i in self.items if self._id(i) not in removed]
        self.selected -= set(removed)
        if removed:
            self.notice("success", "Deleted", f"Deleted {len(removed)} {self.label}")
        if failed:
            self.notice("error", "Some deletes failed", f"{failed} {self.label} could not be deleted")
        return len(removed), failed


def product_screen(api: ApiClient, notify: Optional[NotifyFn] = None) -> ListScreen:
    return ListScreen(api, "products", products.get_products, products.delete_product, notify)


def banner_screen(api: ApiClient, notify: Optional[NotifyFn] = None) -> ListScreen:
    return ListScreen(api, "banners", banners.get_banners, banners.delete_banner, notify)


def coupon_screen(api: ApiClient, notify: Optional[NotifyFn] = None) -> ListScreen:
    return ListScreen(api, "coupons", coupons.get_coupons, coupons.delete_coupon, notify)
