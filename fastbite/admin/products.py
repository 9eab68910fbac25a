# fastbite/admin/products.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..schemas import Pagination, Product
from ..services.client import ApiClient, ApiError
from .client import delete_each
from .forms import ImageFile, ProductForm, image_files, require_image

logger = logging.getLogger(__name__)


def normalize_product(raw: Dict[str, Any]) -> Product:
    """
    Admin view of a product record.

    Out-of-stock products are always shown as unavailable and inactive;
    otherwise a missing status follows ``isActive``. ``categoryId`` falls back
    to the first linked category.
    """
    product = Product.model_validate(raw)
    if product.stock <= 0:
        product.status = "unavailable"
        product.is_active = False
    elif not product.status:
        product.status = "active" if product.is_active else "unavailable"
    if product.category_id is None and product.categories:
        product.category_id = product.categories[0].get("id")
    return product


async def get_products(api: ApiClient, **params: Any) -> Tuple[List[Product], Optional[Pagination]]:
    data = await api.get("/products", params=params, default_error="Could not load products")
    products = [
        normalize_product(p)
        for p in data.get("data") or []
        if isinstance(p, dict) and not p.get("isDeleted")
    ]
    pagination = Pagination.model_validate(data["pagination"]) if data.get("pagination") else None
    return products, pagination


async def get_product(api: ApiClient, product_id: int | str) -> Optional[Product]:
    data = await api.get(f"/products/{product_id}", default_error=f"Could not load product {product_id}")
    raw = data.get("product") or data.get("data")
    return normalize_product(raw) if raw else None


async def create_product(api: ApiClient, form: ProductForm, image: Optional[ImageFile]) -> Optional[Product]:
    require_image(image, "Product")
    data = await api.post(
        "/products",
        data=form.to_fields(),
        files=image_files(image),
        default_error="Could not create product",
    )
    raw = data.get("data") or data.get("product")
    return Product.model_validate(raw) if raw else None


async def update_product(
    api: ApiClient,
    product_id: int | str,
    form: ProductForm,
    image: Optional[ImageFile] = None,
) -> Optional[Product]:
    data = await api.put(
        f"/products/{product_id}",
        data=form.to_fields(),
        files=image_files(image),
        default_error="Could not update product",
    )
    raw = data.get("data") or data.get("product")
    return Product.model_validate(raw) if raw else None


async def delete_product(api: ApiClient, product_id: int | str) -> bool:
    try:
        await api.delete(f"/products/{product_id}", default_error="Could not delete product")
    except ApiError as e:
        logger.warning("Deleting product %s failed: %s", product_id, e)
        return False
    return True


async def delete_products(api: ApiClient, ids: Sequence[int | str]) -> Tuple[int, int]:
    return await delete_each(delete_product, api, ids)
