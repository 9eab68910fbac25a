# fastbite/admin/banners.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from ..schemas import Banner, Pagination
from ..services.client import ApiClient, ApiError
from .client import delete_each
from .forms import BannerForm, ImageFile, image_files

logger = logging.getLogger(__name__)


def _banner(data: Any) -> Optional[Banner]:
    raw = (data.get("data") or data.get("banner")) if isinstance(data, dict) else None
    return Banner.model_validate(raw) if raw else None


async def get_banners(api: ApiClient, **params: Any) -> Tuple[List[Banner], Optional[Pagination]]:
    data = await api.get("/banners", params=params, default_error="Could not load banners")
    banners = [Banner.model_validate(b) for b in data.get("data") or []]
    pagination = Pagination.model_validate(data["pagination"]) if data.get("pagination") else None
    return banners, pagination


async def get_banner(api: ApiClient, banner_id: int | str) -> Optional[Banner]:
    data = await api.get(f"/banners/{banner_id}", default_error=f"Could not load banner {banner_id}")
    raw = data.get("banner")
    return Banner.model_validate(raw) if raw else None


async def create_banner(api: ApiClient, form: BannerForm, image: Optional[ImageFile]) -> Optional[Banner]:
    form.check_image(image)
    data = await api.post(
        "/banners",
        data=form.to_fields(),
        files=image_files(image),
        default_error="Could not create banner",
    )
    return _banner(data)


async def update_banner(
    api: ApiClient,
    banner_id: int | str,
    form: BannerForm,
    image: Optional[ImageFile] = None,
) -> Optional[Banner]:
    data = await api.put(
        f"/banners/{banner_id}",
        data=form.to_fields(),
        files=image_files(image),
        default_error="Could not update banner",
    )
    return _banner(data)


async def delete_banner(api: ApiClient, banner_id: int | str) -> bool:
    try:
        await api.delete(f"/banners/{banner_id}", default_error="Could not delete banner")
    except ApiError as e:
        logger.warning("Deleting banner %s failed: %s", banner_id, e)
        return False
    return True


async def delete_banners(api: ApiClient, ids: Sequence[int | str]) -> Tuple[int, int]:
    return await delete_each(delete_banner, api, ids)
