# fastbite/utils.py
from __future__ import annotations

import re
from typing import Optional

_SLUG_ID_RE = re.compile(r"-(\d+)$")


def format_price(amount: float) -> str:
    """1234567.4 -> '1.234.567 ₫' (rounded, dot as thousands separator)."""
    rounded = int(round(amount or 0))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{abs(rounded):,}".replace(",", ".") + " ₫"


def get_id_from_slug(slug: str) -> Optional[int]:
    if not slug:
        return None
    m = _SLUG_ID_RE.search(slug)
    if m:
        return int(m.group(1))
    if slug.isdigit():
        return int(slug)
    return None


def truncate_text(text: str, max_length: int) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
