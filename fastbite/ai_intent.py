# fastbite/ai_intent.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from .settings import settings

_client: Optional[AsyncOpenAI] = None


def get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key or None)
    return _client


SYSTEM = """You are the intent parser for FastBite, a fast-food shop.
Convert the customer's message into ONE JSON object that matches the provided JSON schema.
Rules:
- Only use food types and categories from the hints. If unsure, leave lists empty.
- spice_level is "mild", "medium" or "hot"; use "medium" when the message says nothing about spice.
- Keep it robust to typos, slang and mixed Vietnamese/English.
"""

REPLY_SYSTEM = """You are FastBite's friendly shop assistant.
Answer in one or two short sentences, recommend only the products you are given, and never invent prices.
"""

# JSON Schema for Structured Outputs
ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "json_schema",
    "name": "fastbite_analysis",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "intent": {
                "type": "string",
                "enum": [
                    "asking_for_recommendations",
                    "looking_for_food",
                    "asking_about_menu",
                    "other",
                ],
            },
            "food_types": {"type": "array", "items": {"type": "string"}},
            "dietary": {"type": "array", "items": {"type": "string"}},
            "spice_level": {"type": "string", "enum": ["mild", "medium", "hot"]},
        },
        "required": ["intent", "food_types", "dietary", "spice_level"],
    },
    "strict": True,
}


def _catalog_hints(categories: List[str], product_names: List[str]) -> Dict[str, Any]:
    # Keep hints small to control cost + latency.
    return {"categories": categories[:40], "products": product_names[:120]}


async def interpret_message_llm(
    message: str,
    categories: List[str],
    product_names: List[str],
) -> Dict[str, Any]:
    payload = {
        "message": message,
        "catalog_hints": _catalog_hints(categories, product_names),
    }

    resp = await get_client().responses.create(
        model=settings.openai_model,
        input=[
            {"role": "system", "content": SYSTEM},
            {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
        ],
        text={"format": ANALYSIS_SCHEMA},
    )
    return json.loads(resp.output_text)


async def generate_reply_llm(message: str, products: List[Dict[str, Any]]) -> str:
    payload = {"message": message, "products": products}
    resp = await get_client().responses.create(
        model=settings.openai_model,
        input=[
            {"role": "system", "content": REPLY_SYSTEM},
            {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
        ],
    )
    return resp.output_text.strip()
