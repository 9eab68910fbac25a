# fastbite/services/addresses.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel

from ..schemas import Address
from .client import ApiClient, ApiError

_WRITABLE = {"fullName", "phone", "province", "district", "ward", "streetAddress", "isDefault"}


def _body(fields: Dict[str, Any]) -> Dict[str, Any]:
    body = {}
    for k, v in fields.items():
        camel = to_camel(k)
        if camel in _WRITABLE and v is not None:
            body[camel] = v
    return body


async def get_addresses(api: ApiClient) -> List[Address]:
    data = await api.get("/addresses", default_error="Could not load addresses")
    return [Address.model_validate(a) for a in data.get("addresses") or []]


async def get_default_address(api: ApiClient) -> Optional[Address]:
    try:
        data = await api.get("/addresses/default", default_error="Could not load default address")
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise
    return Address.model_validate(data["address"]) if data.get("address") else None


async def create_address(api: ApiClient, **fields: Any) -> Address:
    data = await api.post("/addresses", json=_body(fields), default_error="Could not create address")
    return Address.model_validate(data.get("address"))


async def update_address(api: ApiClient, address_id: int, **fields: Any) -> Address:
    data = await api.put(f"/addresses/{address_id}", json=_body(fields), default_error="Could not update address")
    return Address.model_validate(data.get("address"))


async def delete_address(api: ApiClient, address_id: int) -> None:
    await api.delete(f"/addresses/{address_id}", default_error="Could not delete address")


async def set_default_address(api: ApiClient, address_id: int) -> Address:
    data = await api.put(f"/addresses/{address_id}/default", default_error="Could not set default address")
    return Address.model_validate(data.get("address"))
