# fastbite/ordering/assistant.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..services import chatbot
from ..services import recommendations as rec_service
from ..services.client import ApiClient
from ..settings import settings
from ..storage import CHAT_HISTORY_KEY, CHAT_SESSION_KEY, KeyValueStorage
from .nlp import detect_intent, strip_filler_prefix

logger = logging.getLogger(__name__)

DIRECT_CONFIDENCE = 0.9
DIRECT_REASONS = ("matches your request", "exactly what you asked")

NO_RESULTS = "I couldn't find a good match right now. Try describing the dish you want in more detail."
NEW_USER = "Here are some popular dishes. Log in and keep browsing to get more personal suggestions!"
DEFAULT_PICKS = "Here are some dishes that might suit you:"

Metadata = Optional[Dict[str, Any]]


def is_direct_match(product: Dict[str, Any]) -> bool:
    reasoning = str(product.get("reasoning") or "").lower()
    return (product.get("confidence") or 0) > DIRECT_CONFIDENCE or any(r in reasoning for r in DIRECT_REASONS)


def rank_direct_first(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(products, key=lambda p: (not is_direct_match(p), -(p.get("confidence") or 0)))


def recommendation_text(data: Dict[str, Any], products: List[Dict[str, Any]]) -> str:
    analysis = data.get("queryAnalysis") or {}
    reasonings = data.get("reasonings") or []

    if any(is_direct_match(p) for p in products) or analysis.get("exactProductMatch") or analysis.get("isDirectProductRequest"):
        if analysis.get("exactProductMatch") and analysis.get("primaryProductIntent"):
            return f"Here is the {analysis['primaryProductIntent']} you asked for."
        if analysis.get("isDirectProductRequest"):
            keywords = ", ".join(analysis.get("extractedKeywords") or [])
            return f'These dishes best match "{keywords}":'
        return "These dishes best match your request:"
    if data.get("isNewUser"):
        return NEW_USER
    if reasonings:
        return "Suggested based on your " + ", ".join(reasonings) + "."
    return DEFAULT_PICKS


class ChatAssistant:
    """
    Storefront chat: recommendation requests are answered from the
    recommendation endpoint with a product carousel; everything else goes to
    the backend chatbot.
    """

    def __init__(self, api: ApiClient, storage: KeyValueStorage, max_history: int | None = None):
        self.api = api
        self.storage = storage
        self.max_history = max_history or settings.chat_max_history

    @property
    def history(self) -> List[Dict[str, str]]:
        return self.storage.get_json(CHAT_HISTORY_KEY, [])

    def _remember(self, role: str, content: str) -> None:
        history = self.history + [{"role": role, "content": content}]
        self.storage.set_json(CHAT_HISTORY_KEY, history[-self.max_history:])

    def reset(self) -> None:
        self.storage.remove_item(CHAT_HISTORY_KEY)
        self.storage.remove_item(CHAT_SESSION_KEY)

    async def recommend(self, text: str) -> Tuple[str, Metadata]:
        query = strip_filler_prefix(text) or text
        data = await rec_service.get_chat_recommendations(self.api, query, limit=5)
        products = data.get("products") or []
        if not products:
            return NO_RESULTS, None
        products = rank_direct_first(products)
        return recommendation_text(data, products), {"type": "product_carousel", "products": products}

    async def reply(self, text: str) -> Tuple[str, Metadata]:
        text = (text or "").strip()
        if not text:
            return "", None

        self._remember("user", text)
        if detect_intent(text) == "recommendation":
            answer, metadata = await self.recommend(text)
        else:
            answer, metadata = await chatbot.send_message(self.api, self.storage, text)
        self._remember("model", answer)
        return answer, metadata
