# fastbite/session.py
"""
Customer session state: the stored JWT and user record, plus the storefront
objects that depend on who is logged in.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import httpx

from . import auth
from .notices import Notifier, NotifyFn
from .ordering.assistant import ChatAssistant
from .ordering.cart_store import CartManager
from .ordering.checkout import CheckoutFlow
from .schemas import UserData
from .services import auth_service, behavior
from .services.client import ApiClient, ApiError
from .settings import settings
from .storage import TOKEN_KEY, USER_KEY, KeyValueStorage, cart_key

logger = logging.getLogger(__name__)


class AuthManager:
    def __init__(
        self,
        storage: KeyValueStorage,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        refresh_margin: timedelta | None = None,
    ):
        self.storage = storage
        self.refresh_margin = refresh_margin or timedelta(minutes=settings.token_refresh_margin_min)
        self.api = ApiClient(
            base_url=api_url,
            token_provider=self.token,
            on_unauthorized=self._on_unauthorized,
            transport=transport,
        )
        self.user: Optional[UserData] = None

    # -------------------
    # Stored credentials
    # -------------------
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    @property
    def user_id(self) -> Optional[int]:
        if self.user:
            return self.user.id
        return auth.user_id_from_token(self.token())

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and auth.is_token_valid(self.token())

    def auth_header(self) -> Dict[str, str]:
        return auth.bearer(self.token())

    def _store(self, token: str, user: UserData) -> None:
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_json(USER_KEY, user.to_api())
        self.user = user

    def clear_credentials(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)
        self.user = None

    def _on_unauthorized(self, status_code: int) -> None:
        logger.warning("Backend answered %s, clearing stored credentials", status_code)
        self.clear_credentials()

    def restore(self, now: datetime | None = None) -> Optional[UserData]:
        """Load the stored session; an invalid or expired token is removed."""
        token = self.token()
        if not token:
            return None
        if not auth.is_token_valid(token, now):
            logger.info("Stored token is invalid or expired, clearing session")
            self.clear_credentials()
            return None
        raw = self.storage.get_json(USER_KEY)
        if not raw:
            return None
        try:
            self.user = UserData.model_validate(raw)
        except ValueError:
            self.clear_credentials()
            return None
        return self.user

    # -------------------
    # Backend calls
    # -------------------
    async def login(self, email: str, password: str) -> UserData:
        resp = await auth_service.login(self.api, email, password)
        self._store(resp.token, resp.user)
        return resp.user

    async def register(self, name: str, email: str, password: str, phone: str | None = None) -> UserData:
        resp = await auth_service.register(self.api, name, email, password, phone)
        self._store(resp.token, resp.user)
        return resp.user

    async def current_user(self) -> UserData:
        user = await auth_service.me(self.api)
        self.user = user
        self.storage.set_json(USER_KEY, user.to_api())
        return user

    async def refresh_if_needed(self, now: datetime | None = None) -> bool:
        """Refresh the token when it expires within the margin. Returns True if a new token was stored."""
        token = self.token()
        if not token:
            return False
        if auth.decode_claims(token) is None:
            self.clear_credentials()
            return False
        if not auth.needs_refresh(token, now, self.refresh_margin):
            return False
        try:
            new_token = await auth_service.refresh_token(self.api)
        except (ApiError, httpx.HTTPError) as e:
            # 401/403 already cleared the credentials
            logger.warning("Token refresh failed: %s", e)
            return False
        self.storage.set_item(TOKEN_KEY, new_token)
        return True

    def logout(self) -> None:
        """Drops the session and the user's cart cache; the guest cart stays."""
        user_id = self.user_id
        if user_id:
            self.storage.remove_item(cart_key(user_id))
        self.clear_credentials()


class Storefront:
    """Wires the customer-side pieces around one session."""

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        notify: Optional[NotifyFn] = None,
    ):
        self.storage = storage or KeyValueStorage()
        self.auth = AuthManager(self.storage, api_url=api_url, transport=transport)
        self.api = self.auth.api
        self.notice = Notifier(notify)
        self.auth.restore()
        self.cart = CartManager(self.storage, self.api, user_id=self.auth.user_id if self.auth.user else None, notify=notify)
        self.checkout = CheckoutFlow(self.api, self.cart, self.storage, notify=notify)
        self.assistant = ChatAssistant(self.api, self.storage)

    async def login(self, email: str, password: str) -> Optional[UserData]:
        try:
            user = await self.auth.login(email, password)
        except ApiError as e:
            self.notice("error", "Login failed", e.message)
            return None
        await self._after_login(user)
        self.notice("success", "Logged in", f"Welcome back, {user.name}")
        return user

    async def register(self, name: str, email: str, password: str, phone: str | None = None) -> Optional[UserData]:
        try:
            user = await self.auth.register(name, email, password, phone)
        except ApiError as e:
            self.notice("error", "Registration failed", e.message)
            return None
        await self._after_login(user)
        return user

    async def _after_login(self, user: UserData) -> None:
        self.cart.set_user(user.id)
        await self.cart.merge_guest_cart()
        await self.cart.load()
        await behavior.sync_all(self.storage, self.api)

    def logout(self) -> None:
        self.auth.logout()
        self.cart.set_user(None)
        self.notice("info", "Logged out")
