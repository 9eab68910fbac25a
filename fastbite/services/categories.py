# fastbite/services/categories.py
from __future__ import annotations

from typing import List

from ..schemas import Category
from .client import ApiClient


async def get_all_categories(api: ApiClient) -> List[Category]:
    data = await api.get("/categories", auth=False, default_error="Could not load categories")
    return [Category.model_validate(c) for c in data.get("data") or []]


async def get_category_by_slug(api: ApiClient, slug: str) -> Category:
    data = await api.get(f"/categories/slug/{slug}", auth=False, default_error="Could not load category")
    return Category.model_validate(data.get("category") or data.get("data"))
