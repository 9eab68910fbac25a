# fastbite/storage.py
"""
Persistent key/value store standing in for the browser's localStorage.

Keys are informal strings (see the constants below); values are text, usually
JSON. There is no versioning: a value that no longer parses is treated as
missing.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from .db import SessionLocal, init_db
from .models import StorageEntry

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
GUEST_CART_KEY = "cart_guest"
CHAT_SESSION_KEY = "chatSessionId"
CHAT_HISTORY_KEY = "chatbot_history"
VIEWED_PRODUCTS_KEY = "viewedProducts"
SEARCH_QUERIES_KEY = "searchQueries"
CURRENT_ORDER_KEY = "currentOrderId"
ADMIN_TOKEN_KEY = "fastbite_admin_token"


def cart_key(user_id: int | str | None) -> str:
    return f"cart_{user_id}" if user_id else GUEST_CART_KEY


class KeyValueStorage:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal, create_tables: bool = True):
        self._session_factory = session_factory
        if create_tables:
            init_db(session_factory.kw.get("bind") if hasattr(session_factory, "kw") else None)

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as db:
            row = db.get(StorageEntry, key)
            return row.value if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            row = db.get(StorageEntry, key)
            if row:
                row.value = value
                row.updated_at = datetime.utcnow()
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as db:
            row = db.get(StorageEntry, key)
            if row:
                db.delete(row)
                db.commit()

    def keys(self) -> List[str]:
        with self._session_factory() as db:
            return [k for (k,) in db.query(StorageEntry.key).order_by(StorageEntry.key).all()]

    def clear(self) -> None:
        with self._session_factory() as db:
            db.query(StorageEntry).delete()
            db.commit()

    # -------------------
    # JSON helpers
    # -------------------
    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None or raw == "":
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt JSON stored under %r", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))
