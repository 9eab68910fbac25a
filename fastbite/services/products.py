# fastbite/services/products.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

import httpx

from ..schemas import Pagination, Product
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6
CATEGORY_LIMIT = 8


def _products(raw: Any) -> List[Product]:
    return [Product.model_validate(p) for p in (raw or []) if isinstance(p, dict)]


async def get_products(
    api: ApiClient,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    search: str | None = None,
    featured: bool | None = None,
    vegetarian: bool | None = None,
) -> Tuple[List[Product], Pagination]:
    data = await api.get(
        "/products",
        params={
            "page": page,
            "limit": limit,
            "category": category,
            "search": search,
            "featured": featured,
            "vegetarian": vegetarian,
        },
        auth=False,
        default_error="Could not load products",
    )
    pagination = Pagination.model_validate(data.get("pagination") or {"page": page, "limit": limit})
    return _products(data.get("data")), pagination


async def get_product(api: ApiClient, product_id: int) -> Product:
    data = await api.get(f"/products/{product_id}", auth=False, default_error="Could not load product")
    return Product.model_validate(data.get("product") or data.get("data"))


async def get_featured_products(api: ApiClient) -> List[Product]:
    products, _ = await get_products(api, limit=FEATURED_LIMIT, featured=True)
    return products


async def get_products_by_category(api: ApiClient, category: str) -> List[Product]:
    products, _ = await get_products(api, limit=CATEGORY_LIMIT, category=category)
    return products


async def like_product(api: ApiClient, product_id: int) -> Dict[str, Any]:
    """Toggles the like; returns ``{"isLiked", "likeCount"}``."""
    return await api.post(f"/products/{product_id}/like", default_error="Could not like product")


async def check_product_like(api: ApiClient, product_id: int) -> Dict[str, Any]:
    try:
        return await api.get(f"/products/{product_id}/check-like")
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Like status for product %s unavailable: %s", product_id, e)
        return {"isLiked": False, "likeCount": 0}


async def get_liked_products(api: ApiClient) -> List[Product]:
    data = await api.get("/products/liked", default_error="Could not load favourite products")
    return _products(data.get("data"))
