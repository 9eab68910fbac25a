# fastbite/services/chatbot.py
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

import httpx

from ..storage import CHAT_SESSION_KEY, KeyValueStorage
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)

SORRY = "Sorry, I can't handle that request right now."
OFFLINE = "Sorry, I can't reach the server right now. Please try again later."
CONNECTION_TIMEOUT = 5.0

_METADATA_RE = re.compile(r"\[\[METADATA\]\](.*?)\[\[/METADATA\]\]", re.DOTALL)
_METADATA_BLOCK_RE = re.compile(r"\n\n\[\[METADATA\]\].*?\[\[/METADATA\]\]", re.DOTALL)


def format_metadata(metadata: Dict[str, Any]) -> str:
    return f"\n\n[[METADATA]]{json.dumps(metadata, ensure_ascii=False)}[[/METADATA]]"


def parse_response_metadata(response: str) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Split a bot reply into its text and the optional trailing metadata block:

      "Try these!\\n\\n[[METADATA]]{...}[[/METADATA]]" -> ("Try these!", {...})

    A block that is not valid JSON is left in the text.
    """
    m = _METADATA_RE.search(response or "")
    if not m:
        return response, None
    try:
        metadata = json.loads(m.group(1))
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed chat metadata block")
        return response, None
    return _METADATA_BLOCK_RE.sub("", response), metadata


def chat_session_id(storage: KeyValueStorage) -> str:
    sid = storage.get_item(CHAT_SESSION_KEY)
    if not sid:
        sid = uuid4().hex
        storage.set_item(CHAT_SESSION_KEY, sid)
    return sid


def _reply(data: Any) -> Optional[str]:
    if isinstance(data, dict) and data.get("success") and data.get("response"):
        return str(data["response"])
    return None


async def send_message(api: ApiClient, storage: KeyValueStorage, message: str) -> Tuple[str, Optional[Dict[str, Any]]]:
    try:
        data = await api.post("/chat/message", json={"message": message, "sessionId": chat_session_id(storage)})
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Chat message failed, trying direct AI query: %s", e)
    else:
        reply = _reply(data)
        return parse_response_metadata(reply) if reply else (SORRY, None)

    try:
        data = await api.post("/chat/ai/query", json={"question": message})
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Direct AI query failed: %s", e)
        return OFFLINE, None
    reply = _reply(data)
    return parse_response_metadata(reply) if reply else (SORRY, None)


async def check_connection(api: ApiClient) -> bool:
    try:
        data = await api.get("/chat/db-test", auth=False, timeout=CONNECTION_TIMEOUT)
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Chat backend unreachable: %s", e)
        return False
    return bool(isinstance(data, dict) and data.get("success"))


async def get_chat_history(api: ApiClient, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    return await api.get(
        "/chat/history",
        params={"page": page, "limit": limit},
        default_error="Could not load chat history",
    )
