# fastbite/services/client.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from ..auth import bearer
from ..settings import settings

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHook = Callable[[int], None]


class ApiError(Exception):
    """The backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


def _clean_params(params: Mapping[str, Any] | None) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in (params or {}).items():
        if v is None or v == "":
            continue
        out[k] = ("true" if v else "false") if isinstance(v, bool) else v
    return out


def _error_message(resp: httpx.Response, default: str) -> tuple[str, Any]:
    try:
        payload = resp.json()
    except ValueError:
        return default, resp.text
    if isinstance(payload, dict):
        msg = payload.get("message") or payload.get("error")
        if msg:
            return str(msg), payload
    return default, payload


class ApiClient:
    """
    Thin JSON client for the backend REST API.

    - Adds the bearer token from ``token_provider`` when one is present.
    - 401/403 responses call ``on_unauthorized`` before raising ``ApiError``.
    - Transport failures (``httpx.TransportError``) are not wrapped.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: TokenProvider | None = None,
        on_unauthorized: UnauthorizedHook | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._transport = transport

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def token(self) -> Optional[str]:
        return self.token_provider() if self.token_provider else None

    def with_base(self, base_url: str) -> "ApiClient":
        """Same auth and transport, different root (e.g. the site's own /api routes)."""
        return ApiClient(
            base_url=base_url,
            token_provider=self.token_provider,
            on_unauthorized=self.on_unauthorized,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Any = None,
        auth: bool = True,
        default_error: str = "Request failed",
        timeout: float | None = None,
    ) -> Any:
        headers = bearer(self.token()) if auth else {}
        async with httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.request(
                method,
                self.url(path),
                params=_clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=headers,
            )

        if resp.status_code in (401, 403) and self.on_unauthorized:
            self.on_unauthorized(resp.status_code)

        if resp.is_error:
            message, payload = _error_message(resp, default_error)
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, message)
            raise ApiError(message, resp.status_code, payload)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
