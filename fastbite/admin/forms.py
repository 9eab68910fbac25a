# fastbite/admin/forms.py
"""
Admin edit forms.

Each form validates what the dashboard checked before submitting and renders
itself as multipart text fields (``to_fields``); images travel separately as
httpx ``files`` tuples.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..schemas import BannerPosition, BannerType, DiscountType

# (filename, content, content type), as accepted by httpx ``files=``
ImageFile = Tuple[str, bytes, str]

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
COUPON_CODE = re.compile(r"^[A-Z0-9]+$")
MIN_FIXED_DISCOUNT = 1000


def first_error(exc: Exception) -> str:
    """One line for a notice: the first validation problem, or the exception text."""
    if not isinstance(exc, ValidationError):
        return str(exc)
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    msg = str(err.get("msg") or "Invalid value")
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    loc = ".".join(str(p) for p in err.get("loc") or ())
    return f"{loc}: {msg}" if loc else msg


def require_image(image: Optional[ImageFile], what: str) -> ImageFile:
    if not image or not image[1]:
        raise ValueError(f"{what} image is required")
    return image


def image_files(image: Optional[ImageFile]) -> Optional[Dict[str, ImageFile]]:
    return {"image": image} if image else None


def _field(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(getattr(value, "value", value))


class AdminForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    # form field name -> attribute
    FIELDS: ClassVar[Dict[str, str]] = {}

    def to_fields(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for name, attr in self.FIELDS.items():
            value = getattr(self, attr)
            if value is None or value == "":
                continue
            out[name] = _field(value)
        return out


# -------------------
# Products
# -------------------
class ProductForm(AdminForm):
    FIELDS = {
        "name": "name",
        "description": "description",
        "price": "price",
        "stock": "stock",
        "categoryId": "category_id",
        "isVegetarian": "is_vegetarian",
        "isFeatured": "is_featured",
        "isActive": "is_active",
        "preparationTime": "preparation_time",
        "calories": "calories",
        "tags": "tags",
    }

    name: str
    description: str = ""
    price: float = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    category_id: int
    is_vegetarian: bool = False
    is_featured: bool = False
    is_active: bool = True
    preparation_time: Optional[int] = Field(default=None, ge=0)
    calories: Optional[int] = Field(default=None, ge=0)
    tags: str = ""

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise ValueError("Product name is required")
        return v

    @field_validator("category_id", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Any:
        if v in (None, "", 0, "0"):
            raise ValueError("Please choose a category")
        return v


# -------------------
# Banners
# -------------------
class BannerForm(AdminForm):
    FIELDS = {
        "title": "title",
        "description": "description",
        "linkUrl": "link_url",
        "buttonText": "button_text",
        "type": "type",
        "position": "position",
        "order": "order",
        "backgroundColor": "background_color",
        "textColor": "text_color",
        "startDate": "start_date",
        "endDate": "end_date",
        "isActive": "is_active",
        "imageUrl": "image_url",
    }

    title: str
    description: str = ""
    link_url: str = ""
    button_text: str = ""
    type: BannerType = BannerType.HERO
    position: BannerPosition = BannerPosition.HOME_TOP
    order: int = Field(default=0, ge=0)
    background_color: str = "#ffffff"
    text_color: str = "#000000"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    # the image already stored on the banner; a new upload replaces it
    image_url: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        if not v:
            raise ValueError("Banner title is required")
        return v

    @field_validator("background_color", "text_color")
    @classmethod
    def _hex(cls, v: str) -> str:
        if not HEX_COLOR.match(v):
            raise ValueError(f"{v!r} is not a hex colour")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return v or None

    @model_validator(mode="after")
    def _date_range(self) -> "BannerForm":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        return self

    def check_image(self, image: Optional[ImageFile]) -> None:
        if not self.image_url:
            require_image(image, "Banner")


# -------------------
# Coupons
# -------------------
class CouponForm(AdminForm):
    FIELDS = {
        "code": "code",
        "discountType": "discount_type",
        "discountValue": "discount_value",
        "expiry": "expiry",
        "maxUses": "max_uses",
        "minPurchase": "min_purchase",
        "description": "description",
        "status": "status",
    }

    code: str
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: float
    expiry: date
    max_uses: int = Field(default=100, ge=0)
    min_purchase: float = Field(default=0, ge=0)
    description: str = ""
    status: str = "active"

    @field_validator("code", mode="before")
    @classmethod
    def _code(cls, v: Any) -> str:
        code = str(v or "").strip().upper()
        if not code:
            raise ValueError("Coupon code is required")
        if not COUPON_CODE.match(code):
            raise ValueError("Coupon code may only contain letters A-Z and digits")
        return code

    @field_validator("expiry", mode="before")
    @classmethod
    def _expiry(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("expiry")
    @classmethod
    def _not_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Expiry date cannot be in the past")
        return v

    @model_validator(mode="after")
    def _discount(self) -> "CouponForm":
        if self.discount_type == DiscountType.PERCENTAGE:
            if not 1 <= self.discount_value <= 100:
                raise ValueError("Percentage discount must be between 1 and 100")
        elif self.discount_value < MIN_FIXED_DISCOUNT:
            raise ValueError(f"Fixed discount must be at least {MIN_FIXED_DISCOUNT}")
        return self
