# fastbite/services/recommendations.py
"""
Recommendation endpoints and behaviour tracking.

Tracking is fire-and-forget: without a token it is skipped, and failures are
logged and reported as ``False``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..auth import user_id_from_token
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder-food.jpg"
DEFAULT_REASONING = "Suggested for you"


async def get_personalized_recommendations(
    api: ApiClient,
    query: str | None = None,
    context_type: str | None = None,
    location: str | None = None,
    limit: int | None = None,
    include_reasoning: bool = False,
) -> Dict[str, Any]:
    if not api.token() and not query:
        raise ValueError("Log in for personalised recommendations or provide a search query")
    return await api.get(
        "/recommendations",
        params={
            "query": query,
            "contextType": context_type,
            "location": location,
            "limit": limit,
            "includeReasoning": True if include_reasoning else None,
        },
        default_error="Could not load recommendations",
    )


def normalize_chat_product(raw: Dict[str, Any]) -> Dict[str, Any]:
    categories = raw.get("categories") or []
    return {
        "id": raw.get("id"),
        "name": raw.get("name"),
        "image": raw.get("imageUrl") or PLACEHOLDER_IMAGE,
        "price": raw.get("price"),
        "description": raw.get("description") or "",
        "stock": raw.get("stock") or 0,
        "reasoning": raw.get("reasoning") or DEFAULT_REASONING,
        "confidence": raw.get("confidence") or 0.5,
        "category": (categories[0].get("name") if categories and isinstance(categories[0], dict) else "") or "",
    }


async def get_chat_recommendations(api: ApiClient, query: str | None = None, limit: int = 5) -> Dict[str, Any]:
    """Products for the chat carousel. Never raises; failure gives an empty result with an apology."""
    try:
        data = await api.get(
            "/chat/recommendations",
            params={"query": query, "limit": limit},
            default_error="Could not load recommendations",
        )
        if not data.get("success"):
            raise ApiError(data.get("message") or "Could not load recommendations", payload=data)
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Chat recommendations for %r failed: %s", query, e)
        return {
            "products": [],
            "reasonings": ["Recommendations are unavailable right now"],
            "isNewUser": False,
            "queryAnalysis": None,
        }
    return {
        "products": [normalize_chat_product(p) for p in data.get("products") or []],
        "reasonings": data.get("reasonings") or [],
        "isNewUser": bool(data.get("isNewUser")),
        "queryAnalysis": data.get("queryAnalysis"),
    }


async def get_recommendations_by_search(api: ApiClient, limit: int = 8) -> List[Dict[str, Any]]:
    user_id = user_id_from_token(api.token())
    if not user_id:
        return []
    try:
        data = await api.get(f"/recommendations/{user_id}/search-based", params={"limit": limit})
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Search-based recommendations failed: %s", e)
        return []
    return (data.get("products") or []) if data.get("success") else []


# -------------------
# Tracking
# -------------------
async def _track(api: ApiClient, path: str, body: Dict[str, Any], fallback: Optional[str] = None) -> bool:
    if not api.token():
        logger.debug("Skipping %s: not logged in", path)
        return False
    try:
        await api.post(path, json=body)
        return True
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Tracking call %s failed: %s", path, e)
    if not fallback:
        return False
    try:
        await api.post(fallback, json=body)
        return True
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Fallback tracking call %s failed: %s", fallback, e)
        return False


async def track_product_view(api: ApiClient, product_id: int) -> bool:
    return await _track(api, "/recommendations/track-view", {"productId": product_id})


async def track_search_query(api: ApiClient, search_query: str) -> bool:
    return await _track(api, "/recommendations/track-search", {"searchQuery": search_query})


async def track_product_view_from_search(api: ApiClient, product_id: int, search_query: str) -> bool:
    return await _track(
        api,
        "/recommendations/track-view-from-search",
        {"productId": product_id, "searchQuery": search_query},
    )


async def track_category_click(api: ApiClient, category_id: int) -> bool:
    return await _track(api, "/recommendations/track-category", {"categoryId": category_id})


async def track_like_product(api: ApiClient, product_id: int, is_liked: bool = True) -> bool:
    return await _track(
        api,
        "/recommendations/track-like",
        {"productId": product_id, "isLiked": is_liked},
        fallback="/recommendations/user-behavior/like",
    )


async def track_add_to_cart(api: ApiClient, product_id: int) -> bool:
    return await _track(
        api,
        "/recommendations/track-add-to-cart",
        {"productId": product_id},
        fallback="/recommendations/user-behavior/add-to-cart",
    )


async def track_review(api: ApiClient, product_id: int, rating: int, review_content: str | None = None) -> bool:
    body: Dict[str, Any] = {"productId": product_id, "rating": rating}
    if review_content:
        body["reviewContent"] = review_content
    return await _track(api, "/recommendations/user-behavior/review", body)
