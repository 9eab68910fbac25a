# fastbite/auth.py
"""
Client-side JWT inspection.

Tokens are decoded without signature verification: the server is the trust
boundary, the client only needs the claims to decide whether a token is worth
sending (expiry) and who it belongs to.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MARGIN = timedelta(minutes=15)


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def decode_claims(token: str | None) -> Optional[Dict[str, Any]]:
    if not token or token.count(".") != 2:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.warning("Could not decode token payload: %s", e)
        return None
    return claims if isinstance(claims, dict) else None


def token_expiry(claims: Dict[str, Any]) -> Optional[datetime]:
    exp = claims.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(float(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def is_token_valid(token: str | None, now: datetime | None = None) -> bool:
    claims = decode_claims(token)
    if claims is None:
        return False
    if "exp" not in claims:
        # no expiry claim: treat as valid, the server decides
        return True
    expiry = token_expiry(claims)
    return expiry is not None and expiry > _now(now)


def needs_refresh(
    token: str | None,
    now: datetime | None = None,
    margin: timedelta = DEFAULT_REFRESH_MARGIN,
) -> bool:
    claims = decode_claims(token)
    if not claims:
        return False
    expiry = token_expiry(claims)
    if expiry is None:
        return False
    now = _now(now)
    return now < expiry < now + margin


def user_id_from_token(token: str | None) -> Optional[int]:
    claims = decode_claims(token) or {}
    for key in ("id", "userId", "sub"):
        raw = claims.get(key)
        if raw is None:
            continue
        try:
            return int(raw)
        except (TypeError, ValueError):
            continue
    return None


def bearer(token: str | None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token and token.strip() else {}
