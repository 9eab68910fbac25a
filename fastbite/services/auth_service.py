# fastbite/services/auth_service.py
from __future__ import annotations

from typing import Optional

from ..schemas import AuthResponse, UserData
from .client import ApiClient, ApiError


async def login(api: ApiClient, email: str, password: str) -> AuthResponse:
    data = await api.post(
        "/auth/login",
        json={"email": email, "password": password},
        auth=False,
        default_error="Login failed",
    )
    return AuthResponse.model_validate(data)


async def register(api: ApiClient, name: str, email: str, password: str, phone: Optional[str] = None) -> AuthResponse:
    body = {"name": name, "email": email, "password": password}
    if phone:
        body["phone"] = phone
    data = await api.post("/auth/register", json=body, auth=False, default_error="Registration failed")
    return AuthResponse.model_validate(data)


async def me(api: ApiClient) -> UserData:
    data = await api.get("/auth/me", default_error="Could not load user")
    return UserData.model_validate(data.get("user") or data)


async def refresh_token(api: ApiClient) -> str:
    data = await api.post("/auth/refresh-token", default_error="Could not refresh session")
    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        raise ApiError("Refresh response carried no token", payload=data)
    return str(token)
