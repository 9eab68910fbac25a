# fastbite/settings.py
from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env locally (safe in prod too)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() not in {"", "0", "false", "no"}


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    api_url: str = os.getenv("FASTBITE_API_URL", "http://localhost:8001/api").rstrip("/")
    backend_url: str = os.getenv("FASTBITE_BACKEND_URL", "http://localhost:8001").rstrip("/")
    socket_url: str = os.getenv("FASTBITE_SOCKET_URL", "http://localhost:5000").rstrip("/")
    site_url: str = os.getenv("FASTBITE_SITE_URL", "http://localhost:3000").rstrip("/")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./fastbite.db")

    api_timeout: int = _env_int("API_TIMEOUT", 30)
    admin_api_timeout: int = _env_int("ADMIN_API_TIMEOUT", 15)
    token_refresh_margin_min: int = _env_int("TOKEN_REFRESH_MARGIN_MIN", 15)

    chat_max_history: int = _env_int("CHAT_MAX_HISTORY", 10)
    chat_ai_enabled: bool = _env_flag("CHAT_AI_ENABLED")
    llm_enabled: bool = _env_flag("LLM_ENABLED", "1")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "").strip()
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "").strip()
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
    stripe_currency: str = os.getenv("STRIPE_CURRENCY", "usd")
    api_secret_key: str = os.getenv("API_SECRET_KEY", "").strip()

    port: int = _env_int("PORT", 8000)


settings = Settings()
