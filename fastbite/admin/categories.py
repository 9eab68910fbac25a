# fastbite/admin/categories.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..schemas import Category
from ..services.client import ApiClient, ApiError
from .forms import ImageFile, image_files

logger = logging.getLogger(__name__)


def _category(raw: Dict[str, Any]) -> Category:
    # the list endpoint answers in snake_case for the image
    return Category.model_validate({**raw, "imageUrl": raw.get("imageUrl") or raw.get("image_url") or ""})


async def get_categories(api: ApiClient) -> List[Category]:
    """All categories; an unreachable backend gives an empty list."""
    try:
        data = await api.get("/categories", default_error="Could not load categories")
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Categories unavailable: %s", e)
        return []
    rows = data.get("data") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return []
    return [_category(c) for c in rows if isinstance(c, dict)]


async def get_category(api: ApiClient, category_id: int | str) -> Optional[Category]:
    data = await api.get(f"/categories/{category_id}", default_error=f"Could not load category {category_id}")
    raw = data.get("data") or data.get("category")
    return _category(raw) if raw else None


def _fields(name: str, description: str) -> Dict[str, str]:
    return {"name": name.strip(), "description": description.strip()}


async def create_category(
    api: ApiClient,
    name: str,
    description: str = "",
    image: Optional[ImageFile] = None,
) -> Optional[Category]:
    if not name.strip():
        raise ValueError("Category name is required")
    data = await api.post(
        "/categories",
        data=_fields(name, description),
        files=image_files(image),
        default_error="Could not create category",
    )
    raw = data.get("data") or data.get("category")
    return _category(raw) if raw else None


async def update_category(
    api: ApiClient,
    category_id: int | str,
    name: str,
    description: str = "",
    image: Optional[ImageFile] = None,
) -> Optional[Category]:
    if not name.strip():
        raise ValueError("Category name is required")
    data = await api.put(
        f"/categories/{category_id}",
        data=_fields(name, description),
        files=image_files(image),
        default_error="Could not update category",
    )
    raw = data.get("data") or data.get("category")
    return _category(raw) if raw else None


async def delete_category(api: ApiClient, category_id: int | str) -> bool:
    try:
        await api.delete(f"/categories/{category_id}", default_error="Could not delete category")
    except ApiError as e:
        logger.warning("Deleting category %s failed: %s", category_id, e)
        return False
    return True
