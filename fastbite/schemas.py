# fastbite/schemas.py
"""
Records mirrored from the backend REST API.

The backend speaks camelCase JSON; models accept either spelling and dump back
to camelCase with ``model_dump(by_alias=True)``. Nothing here enforces business
invariants beyond optional field presence: the backend owns those.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# -------------------
# Enums
# -------------------
class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    COD = "cod"
    STRIPE = "stripe"
    MOMO = "momo"
    VNPAY = "vnpay"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class BannerType(str, Enum):
    HERO = "hero"
    PROMOTION = "promotion"
    PRODUCT = "product"
    CATEGORY = "category"


class BannerPosition(str, Enum):
    HOME_TOP = "home_top"
    HOME_MIDDLE = "home_middle"
    HOME_BOTTOM = "home_bottom"
    CATEGORY_PAGE = "category_page"
    PRODUCT_PAGE = "product_page"


# -------------------
# Catalog
# -------------------
class Category(ApiModel):
    id: int
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = None


class Product(ApiModel):
    id: int
    name: str
    price: float = 0.0
    stock: int = 0
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[int] = None
    categories: List[Dict[str, Any]] = Field(default_factory=list)
    is_vegetarian: bool = False
    is_featured: bool = False
    is_active: bool = True
    is_deleted: bool = False
    status: Optional[str] = None
    tags: Union[str, List[str], None] = None
    spice_level: Optional[str] = None
    preparation_time: Optional[int] = None
    calories: Optional[int] = None
    rating: float = 0.0
    num_reviews: int = 0
    like_count: int = 0

    @property
    def tag_list(self) -> List[str]:
        if not self.tags:
            return []
        raw = self.tags.split(",") if isinstance(self.tags, str) else self.tags
        return [t.strip().lower() for t in raw if t and t.strip()]

    @property
    def category_name(self) -> str:
        if self.category:
            return self.category
        if self.categories:
            return str(self.categories[0].get("name") or "")
        return ""


class ProductSnapshot(ApiModel):
    """The denormalised copy of a product kept on each cart line."""

    id: int
    name: str
    price: float
    stock: int = 0
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            stock=product.stock,
            image=product.image_url,
            description=product.description,
            category=product.category_name or None,
        )


class CartItem(ApiModel):
    product: ProductSnapshot
    quantity: int = 1

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class Review(ApiModel):
    id: int
    product_id: int
    user_id: Optional[int] = None
    rating: int
    comment: str = ""
    created_at: Optional[datetime] = None
    user: Optional[Dict[str, Any]] = None


class Banner(ApiModel):
    id: int
    title: str
    image_url: str = ""
    description: Optional[str] = None
    link_url: Optional[str] = None
    button_text: Optional[str] = None
    type: BannerType = BannerType.HERO
    position: BannerPosition = BannerPosition.HOME_TOP
    order: int = 0
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True


# -------------------
# Promotions
# -------------------
class Promotion(ApiModel):
    id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True


class CouponInfo(ApiModel):
    code: str
    usage_limit: Optional[int] = None
    usage_count: int = 0


class CouponValidation(ApiModel):
    coupon: CouponInfo
    promotion: Promotion


class Coupon(ApiModel):
    id: Union[int, str]
    code: str
    discount_type: DiscountType
    discount_value: float
    expiry: Optional[datetime] = None
    status: str = "active"
    max_uses: int = 0
    current_uses: int = 0
    min_purchase: float = 0
    description: Optional[str] = None


# -------------------
# Users / orders
# -------------------
class UserData(ApiModel):
    id: int
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    role: str = "user"


class AuthResponse(ApiModel):
    user: UserData
    token: str
    message: Optional[str] = None


class Address(ApiModel):
    id: int
    full_name: str
    phone: str
    province: str
    district: str
    ward: str
    street_address: str
    is_default: bool = False
    user_id: Optional[int] = None


class OrderItem(ApiModel):
    id: Optional[int] = None
    order_id: Optional[int] = None
    product_id: int
    product_name: Optional[str] = None
    price: float = 0.0
    quantity: int = 1


class Order(ApiModel):
    id: int
    user_id: Optional[int] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    total_amount: float = 0.0
    discount_amount: float = 0.0
    shipping_fee: float = 0.0
    coupon_code: Optional[str] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    order_items: List[OrderItem] = Field(default_factory=list)

    @field_validator("payment_method", "payment_status", mode="before")
    @classmethod
    def _blank_is_none(cls, v: Any) -> Any:
        return v or None


class Pagination(ApiModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0


# -------------------
# UI feedback
# -------------------
class Notice(BaseModel):
    """A user-facing message; what the browser build rendered as a toast."""

    level: str = "info"  # info | success | warning | error
    title: str
    description: str = ""
    link: Optional[str] = None
