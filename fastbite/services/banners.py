# fastbite/services/banners.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

import httpx
from pydantic import ValidationError

from ..schemas import Banner, BannerPosition, BannerType
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def is_banner_live(banner: Banner, now: datetime | None = None) -> bool:
    if not banner.is_active:
        return False
    now = _aware(now or datetime.now(timezone.utc))
    if banner.start_date and _aware(banner.start_date) > now:
        return False
    if banner.end_date and _aware(banner.end_date) < now:
        return False
    return True


async def get_active_banners(
    api: ApiClient,
    type: BannerType | str | None = None,
    position: BannerPosition | str | None = None,
) -> List[Banner]:
    """Active banners for a placement, sorted by display order. Errors give an empty list."""
    params = {
        "type": getattr(type, "value", type),
        "position": getattr(position, "value", position),
    }
    try:
        data = await api.get("/banners/active", params=params, auth=False, default_error="Could not load banners")
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Banners unavailable (type=%s, position=%s): %s", params["type"], params["position"], e)
        return []
    banners = []
    for raw in data.get("data") or []:
        try:
            banners.append(Banner.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed banner %r: %s", raw, e)
    return sorted((b for b in banners if is_banner_live(b)), key=lambda b: b.order)


async def get_hero_banners(api: ApiClient) -> List[Banner]:
    return await get_active_banners(api, BannerType.HERO, BannerPosition.HOME_TOP)


async def get_product_banners(api: ApiClient) -> List[Banner]:
    return await get_active_banners(api, BannerType.PRODUCT, BannerPosition.HOME_MIDDLE)


async def get_promotion_banners(api: ApiClient) -> List[Banner]:
    return await get_active_banners(api, BannerType.PROMOTION, BannerPosition.HOME_BOTTOM)


async def get_category_page_banners(api: ApiClient) -> List[Banner]:
    return await get_active_banners(api, None, BannerPosition.CATEGORY_PAGE)


async def get_product_list_banners(api: ApiClient) -> List[Banner]:
    return await get_active_banners(api, BannerType.PRODUCT, BannerPosition.PRODUCT_PAGE)
