from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from fastbite.db import get_db
from fastbite.storage import GUEST_CART_KEY, cart_key
from fastbite.utils import format_price, get_id_from_slug, truncate_text


def test_storage_roundtrip_and_remove(storage):
    storage.set_item("token", "abc")
    assert storage.get_item("token") == "abc"
    storage.set_item("token", "def")
    assert storage.get_item("token") == "def"
    storage.remove_item("token")
    assert storage.get_item("token") is None
    # removing a missing key is a no-op
    storage.remove_item("token")


def test_storage_json_helpers_and_corrupt_values(storage):
    storage.set_json("cart_guest", [{"a": 1}])
    assert storage.get_json("cart_guest") == [{"a": 1}]

    storage.set_item("broken", "{not json")
    assert storage.get_json("broken", []) == []
    assert storage.get_json("missing", "dflt") == "dflt"


def test_storage_keys_and_clear(storage):
    storage.set_item("b", "1")
    storage.set_item("a", "2")
    assert storage.keys() == ["a", "b"]
    storage.clear()
    assert storage.keys() == []


def test_cart_key():
    assert cart_key(None) == GUEST_CART_KEY
    assert cart_key(5) == "cart_5"


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "0 ₫"),
        (999, "999 ₫"),
        (1234567.4, "1.234.567 ₫"),
        (1000.5, "1.000 ₫"),
        (-25000, "-25.000 ₫"),
    ],
)
def test_format_price(amount, expected):
    assert format_price(amount) == expected


def test_get_id_from_slug():
    assert get_id_from_slug("burger-bo-12") == 12
    assert get_id_from_slug("12") == 12
    assert get_id_from_slug("burger") is None
    assert get_id_from_slug("") is None


def test_truncate_text():
    assert truncate_text("hello world", 5) == "hello..."
    assert truncate_text("short", 10) == "short"
    assert truncate_text("", 3) == ""


def test_get_db_closes_session():
    gen = get_db()
    db = next(gen)
    assert isinstance(db, Session)
    with pytest.raises(StopIteration):
        next(gen)
