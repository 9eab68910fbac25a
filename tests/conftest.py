# tests/conftest.py
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from jose import jwt
from sqlalchemy.orm import sessionmaker

from fastbite.db import make_engine
from fastbite.services.client import ApiClient
from fastbite.storage import KeyValueStorage

API_URL = "http://backend.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage() -> KeyValueStorage:
    engine = make_engine("sqlite://")
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    return KeyValueStorage(factory)


def make_token(user_id: int = 1, expires_in: Optional[timedelta] = timedelta(hours=2), **claims: Any) -> str:
    payload: Dict[str, Any] = {"id": user_id, **claims}
    if expires_in is not None:
        payload["exp"] = int((datetime.now(timezone.utc) + expires_in).timestamp())
    return jwt.encode(payload, "test-secret", algorithm="HS256")


@pytest.fixture
def token_factory():
    return make_token


class FakeBackend:
    """
    Route table for ``httpx.MockTransport``.

    Routes are keyed by method and path below ``/api``; a route is a JSON body,
    a ``(status, body)`` tuple or a callable taking the request. Unknown routes
    answer 404. Every request is kept in ``calls``.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status, body if body is not None else {})

    def handle(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method.upper(), path)] = handler

    def fail(self, method: str, path: str, exc: Exception | None = None) -> None:
        def raise_(request: httpx.Request) -> httpx.Response:
            raise exc or httpx.ConnectError("backend down", request=request)

        self.routes[(method.upper(), path)] = raise_

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route {request.method} {path}"})
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.method == method.upper() and r.url.path.endswith(path)]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content or b"null")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(backend: FakeBackend) -> ApiClient:
    return ApiClient(base_url=API_URL, transport=backend.transport)


@pytest.fixture
def authed_api(backend: FakeBackend) -> ApiClient:
    token = make_token(7)
    return ApiClient(base_url=API_URL, token_provider=lambda: token, transport=backend.transport)


@pytest.fixture
def notices() -> List[Any]:
    return []


def product_json(product_id: int = 1, **overrides: Any) -> Dict[str, Any]:
    data = {
        "id": product_id,
        "name": f"Burger {product_id}",
        "price": 50000,
        "stock": 10,
        "isActive": True,
        "categories": [{"id": 3, "name": "Burgers"}],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_product_json():
    return product_json
