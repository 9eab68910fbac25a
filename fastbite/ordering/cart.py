# fastbite/ordering/cart.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..schemas import CartItem, Product, ProductSnapshot
from ..utils import format_price


def load_cart(raw: Any) -> List[CartItem]:
    """Cart lines from stored JSON (a list of dicts); unreadable lines are dropped."""
    if not isinstance(raw, list):
        return []
    items: List[CartItem] = []
    for line in raw:
        try:
            items.append(CartItem.model_validate(line))
        except ValidationError:
            continue
    return items


def dump_cart(items: List[CartItem]) -> List[Dict[str, Any]]:
    return [i.model_dump(by_alias=True, mode="json") for i in items]


def cart_total(items: List[CartItem]) -> float:
    return sum(i.product.price * i.quantity for i in items)


def cart_count(items: List[CartItem]) -> int:
    return sum(i.quantity for i in items)


def find_line(items: List[CartItem], product_id: int) -> Optional[CartItem]:
    return next((i for i in items if i.product_id == product_id), None)


def clamp_quantity(requested: int, stock: int) -> Tuple[int, bool]:
    """
    Quantity actually allowed for a line, and whether it was cut down.

      clamp_quantity(5, 3) -> (3, True)
      clamp_quantity(2, 0) -> (0, True)   # out of stock
    """
    requested = max(0, int(requested))
    stock = max(0, int(stock))
    if requested > stock:
        return stock, True
    return requested, False


def merge_line(items: List[CartItem], product: Product | ProductSnapshot, quantity: int = 1) -> Tuple[List[CartItem], bool]:
    """
    Add ``quantity`` of ``product`` to the cart, merging with an existing line.
    Returns the new list and whether the line was clamped to stock.
    """
    snapshot = ProductSnapshot.from_product(product) if isinstance(product, Product) else product
    existing = find_line(items, snapshot.id)
    wanted = (existing.quantity if existing else 0) + quantity
    qty, clamped = clamp_quantity(wanted, snapshot.stock)

    if qty <= 0:
        return items, clamped

    out = [i for i in items if i.product_id != snapshot.id]

    line = CartItem(product=snapshot, quantity=qty)
    if existing is None:
        return out + [line], clamped
    idx = items.index(existing)
    out.insert(idx, line)
    return out, clamped


def set_quantity(items: List[CartItem], product_id: int, quantity: int) -> Tuple[List[CartItem], bool]:
    """Quantity <= 0 removes the line; otherwise clamp to the line's stock."""
    if quantity <= 0:
        return remove_line(items, product_id), False
    out: List[CartItem] = []
    clamped = False
    for line in items:
        if line.product_id == product_id:
            qty, clamped = clamp_quantity(quantity, line.product.stock)
            if qty <= 0:
                continue
            line = line.model_copy(update={"quantity": qty})
        out.append(line)
    return out, clamped


def remove_line(items: List[CartItem], product_id: int) -> List[CartItem]:
    return [i for i in items if i.product_id != product_id]


def build_summary(items: List[CartItem]) -> Tuple[str, float]:
    if not items:
        return ("Your cart is empty.", 0.0)

    lines: List[str] = []
    for i, line in enumerate(items, start=1):
        lines.append(f"{i}. x{line.quantity} {line.product.name} = {format_price(line.line_total)}")

    total = cart_total(items)
    return ("Order summary:\n" + "\n".join(lines) + f"\n\nTotal: {format_price(total)}", total)


def to_order_items(items: List[CartItem]) -> List[Dict[str, int]]:
    return [{"productId": i.product_id, "quantity": i.quantity} for i in items]
