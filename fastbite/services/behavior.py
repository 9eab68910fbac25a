# fastbite/services/behavior.py
"""Guest browsing history, buffered locally and replayed to the backend after login."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx

from ..storage import SEARCH_QUERIES_KEY, VIEWED_PRODUCTS_KEY, KeyValueStorage
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)

MAX_BUFFERED = 50


def record_view(storage: KeyValueStorage, product_id: int) -> List[int]:
    viewed = [p for p in storage.get_json(VIEWED_PRODUCTS_KEY, []) if p != product_id]
    viewed.insert(0, product_id)
    viewed = viewed[:MAX_BUFFERED]
    storage.set_json(VIEWED_PRODUCTS_KEY, viewed)
    return viewed


def record_search(storage: KeyValueStorage, query: str) -> List[Dict[str, Any]]:
    query = (query or "").strip()
    queries = storage.get_json(SEARCH_QUERIES_KEY, [])
    if not query:
        return queries
    queries.insert(0, {"query": query, "timestamp": datetime.now(timezone.utc).isoformat()})
    queries = queries[:MAX_BUFFERED]
    storage.set_json(SEARCH_QUERIES_KEY, queries)
    return queries


def _query_text(item: Any) -> str:
    return item if isinstance(item, str) else str((item or {}).get("query") or "")


async def sync_viewed_products(storage: KeyValueStorage, api: ApiClient) -> int:
    if not api.token():
        return 0
    viewed = storage.get_json(VIEWED_PRODUCTS_KEY, [])
    sent = 0
    for product_id in viewed:
        try:
            await api.post("/recommendations/user-behavior/view", json={"productId": product_id})
            sent += 1
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Could not sync view of product %s: %s", product_id, e)
    storage.remove_item(VIEWED_PRODUCTS_KEY)
    return sent


async def sync_search_queries(storage: KeyValueStorage, api: ApiClient) -> int:
    if not api.token():
        return 0
    sent = 0
    for item in storage.get_json(SEARCH_QUERIES_KEY, []):
        query = _query_text(item)
        if not query:
            continue
        try:
            await api.post("/recommendations/user-behavior/search", json={"query": query})
            sent += 1
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Could not sync search %r: %s", query, e)
    storage.remove_item(SEARCH_QUERIES_KEY)
    return sent


async def sync_all(storage: KeyValueStorage, api: ApiClient) -> Dict[str, int]:
    views = await sync_viewed_products(storage, api)
    searches = await sync_search_queries(storage, api)
    logger.info("Synced %d product views and %d searches", views, searches)
    return {"views": views, "searches": searches}
