# fastbite/admin/client.py
"""
Backend client for the admin dashboard.

Same REST backend as the storefront, but a separate credential
(``fastbite_admin_token``) and a shorter timeout. A 401 drops the admin token
so the next screen starts from the login form.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Sequence, Tuple

import httpx

from ..schemas import AuthResponse
from ..services.client import ApiClient, ApiError
from ..settings import settings
from ..storage import ADMIN_TOKEN_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

ADMIN_USER_KEY = "fastbite_admin_user"
TIMEOUT_MESSAGE = "The server took too long to respond, please try again later"
GENERIC_MESSAGE = "Something went wrong, please try again later"


class AdminApiClient(ApiClient):
    """``ApiClient`` that turns transport failures into ``ApiError`` with a readable message."""

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            return await super().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out: %s", method, path, e)
            raise ApiError(TIMEOUT_MESSAGE) from e
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(GENERIC_MESSAGE) from e


def admin_api(
    storage: KeyValueStorage,
    api_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AdminApiClient:
    def token() -> str | None:
        return storage.get_item(ADMIN_TOKEN_KEY)

    def on_unauthorized(status_code: int) -> None:
        if status_code == 401:
            logger.warning("Admin token rejected, signing out")
            storage.remove_item(ADMIN_TOKEN_KEY)

    return AdminApiClient(
        base_url=api_url,
        token_provider=token,
        on_unauthorized=on_unauthorized,
        timeout=settings.admin_api_timeout,
        transport=transport,
    )


async def admin_login(api: ApiClient, storage: KeyValueStorage, email: str, password: str) -> Dict[str, Any]:
    data = await api.post(
        "/auth/login",
        json={"email": email, "password": password},
        auth=False,
        default_error="Wrong email or password",
    )
    if not isinstance(data, dict) or not data.get("token"):
        raise ApiError("Invalid token", payload=data)

    resp = AuthResponse.model_validate(data)
    user = {
        "id": resp.user.id,
        "name": resp.user.name or email.split("@")[0],
        "email": resp.user.email,
        "role": resp.user.role,
    }
    storage.set_item(ADMIN_TOKEN_KEY, resp.token)
    storage.set_json(ADMIN_USER_KEY, user)
    return user


def admin_logout(storage: KeyValueStorage) -> None:
    storage.remove_item(ADMIN_TOKEN_KEY)
    storage.remove_item(ADMIN_USER_KEY)


async def delete_each(
    delete: Callable[[ApiClient, Any], Awaitable[bool]],
    api: ApiClient,
    ids: Sequence[Any],
) -> Tuple[int, int]:
    """Runs ``delete`` for one id at a time; returns ``(success, failed)``."""
    success = failed = 0
    for item_id in ids:
        if await delete(api, item_id):
            success += 1
        else:
            failed += 1
    return success, failed
