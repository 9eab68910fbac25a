# fastbite/main.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
import stripe
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .ai_intent import generate_reply_llm, interpret_message_llm
from .command_router import command_to_analysis
from .ordering.nlp import analyze_message, fuzzy_best_key
from .schemas import Product
from .services import categories as category_service
from .services import products as product_service
from .services.client import ApiClient, ApiError
from .settings import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FastBite Storefront API",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

CATALOG_LIMIT = 100
TOP_PICKS = 3
PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=200"


# -------------------
# Schemas
# -------------------
class ChatIn(BaseModel):
    message: str
    user_id: Optional[str] = Field(default=None, alias="userId")


class CheckoutItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: float


class CustomerInfo(BaseModel):
    name: str = ""
    email: Optional[str] = None
    phone: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""


class CheckoutTotals(BaseModel):
    subtotal: float = 0.0
    shipping_fee: float = 0.0
    discount: float = 0.0
    total: float = 0.0


class CheckoutIn(BaseModel):
    order_id: Optional[int] = Field(default=None, alias="orderId")
    items: Optional[List[CheckoutItem]] = None
    customer_info: Optional[CustomerInfo] = Field(default=None, alias="customerInfo")
    total_amount: Optional[CheckoutTotals] = Field(default=None, alias="totalAmount")


# -------------------
# Dependencies
# -------------------
class Catalog:
    """Products and category names from the backend."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def load(self) -> Tuple[List[Product], List[str]]:
        products, _ = await product_service.get_products(self.api, limit=CATALOG_LIMIT)
        categories = await category_service.get_all_categories(self.api)
        return products, [c.name for c in categories]


def get_catalog() -> Catalog:
    return Catalog(ApiClient())


def get_backend() -> ApiClient:
    """Backend client authenticated with the server-to-server secret."""
    return ApiClient(token_provider=lambda: settings.api_secret_key or None)


def get_stripe():
    stripe.api_key = settings.stripe_secret_key
    return stripe


# -------------------
# Helpers
# -------------------
async def _analyze(message: str, categories: List[str], products: List[Product]) -> Dict[str, Any]:
    """
    Optional LLM layer for intent analysis.
    Silent fallback to keyword analysis on any error.
    """
    if not (settings.llm_enabled and settings.openai_api_key):
        return analyze_message(message)

    try:
        cmd = await interpret_message_llm(message, categories, [p.name for p in products])
        return command_to_analysis(cmd)
    except Exception:
        logger.exception("LLM intent analysis failed, using keyword analysis")
        return analyze_message(message)


def _matches_food_type(product: Product, food_types: List[str], categories: List[str]) -> bool:
    if not food_types:
        return True
    names = [c.lower() for c in categories]
    haystack = " ".join([product.name, product.category_name, " ".join(product.tag_list)]).lower()
    for food in food_types:
        category = fuzzy_best_key(names, food)
        if category and category == product.category_name.lower():
            return True
        if food in haystack:
            return True
    return False


def pick_products(products: List[Product], analysis: Dict[str, Any], categories: List[str]) -> List[Product]:
    if analysis.get("intent") not in {"looking_for_food", "asking_for_recommendations"}:
        return []
    prefs = analysis.get("preferences") or {}
    dietary = set(prefs.get("dietary") or [])
    food_types = list(prefs.get("food_types") or [])
    spice = prefs.get("spice_level") or "medium"

    picks = [
        p for p in products
        if p.is_active and p.stock > 0
        and not ({"vegetarian", "vegan"} & dietary and not p.is_vegetarian)
        and _matches_food_type(p, food_types, categories)
    ]
    # stable sort: spice matches first, catalog order otherwise
    picks.sort(key=lambda p: (p.spice_level or "medium") != spice)
    return picks[:TOP_PICKS]


def templated_reply(analysis: Dict[str, Any], picks: List[Product], categories: List[str]) -> str:
    if picks:
        return "Here are a few picks for you: " + ", ".join(p.name for p in picks) + "."
    intent = analysis.get("intent")
    if intent == "asking_about_menu" and categories:
        return "We have: " + ", ".join(categories)
    if intent in {"looking_for_food", "asking_for_recommendations"}:
        return "I couldn't find anything matching that. Try another dish or category."
    return "Tell me what you're craving and I'll suggest something."


async def _reply(message: str, analysis: Dict[str, Any], picks: List[Product], categories: List[str]) -> str:
    if settings.chat_ai_enabled and settings.openai_api_key:
        try:
            return await generate_reply_llm(message, [{"name": p.name, "price": p.price} for p in picks])
        except Exception:
            logger.exception("LLM reply failed, using template")
    return templated_reply(analysis, picks, categories)


# -------------------
# Health
# -------------------
@app.get("/")
def root():
    return {"ok": True, "service": "fastbite-storefront"}


# -------------------
# Chat
# -------------------
@app.post("/api/chat")
async def chat(payload: ChatIn, catalog: Catalog = Depends(get_catalog)):
    try:
        products, categories = await catalog.load()
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Catalog unavailable for chat: %s", e)
        return JSONResponse({"error": "Failed to process request"}, status_code=500)

    analysis = await _analyze(payload.message, categories, products)
    picks = pick_products(products, analysis, categories)
    reply = await _reply(payload.message, analysis, picks, categories)

    return {
        "message": reply,
        "intent": analysis.get("intent"),
        "recommendations": [
            {"id": p.id, "name": p.name, "price": p.price, "image": p.image_url or PLACEHOLDER_IMAGE}
            for p in picks
        ],
    }


# -------------------
# Stripe checkout
# -------------------
def build_line_items(payload: CheckoutIn, currency: str) -> List[Dict[str, Any]]:
    line_items = [
        {
            "price_data": {
                "currency": currency,
                "product_data": {"name": item.product_name, "description": f"Quantity: {item.quantity}"},
                "unit_amount": round(item.price * 100),
            },
            "quantity": item.quantity,
        }
        for item in payload.items or []
    ]
    shipping = payload.total_amount.shipping_fee if payload.total_amount else 0
    if shipping > 0:
        line_items.append(
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": "Shipping fee"},
                    "unit_amount": round(shipping * 100),
                },
                "quantity": 1,
            }
        )
    return line_items


@app.post("/api/create-checkout-session")
async def create_checkout_session(payload: CheckoutIn, stripe_api=Depends(get_stripe)):
    if not (payload.order_id and payload.items and payload.customer_info and payload.total_amount):
        raise HTTPException(status_code=400, detail="Missing order information")

    order_id = payload.order_id
    site = settings.site_url
    try:
        session = await run_in_threadpool(
            stripe_api.checkout.Session.create,
            payment_method_types=["card"],
            line_items=build_line_items(payload, settings.stripe_currency),
            mode="payment",
            success_url=f"{site}/payment/success?method=stripe&session_id={{CHECKOUT_SESSION_ID}}&orderId={order_id}",
            cancel_url=f"{site}/payment/cancel?method=stripe&orderId={order_id}",
            customer_email=payload.customer_info.email or None,
            metadata={"orderId": str(order_id)},
        )
    except stripe.StripeError as e:
        logger.error("Stripe checkout session for order %s failed: %s", order_id, e)
        return JSONResponse({"error": "Could not create checkout session"}, status_code=500)

    return {"checkoutUrl": session["url"]}


# -------------------
# Stripe webhook
# -------------------
def _field(obj: Any, key: str) -> Any:
    # Stripe objects support [] and `in` but not dict.get
    return obj[key] if obj is not None and key in obj else None


@app.post("/api/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_api=Depends(get_stripe),
    backend: ApiClient = Depends(get_backend),
):
    body = await request.body()
    signature = request.headers.get("stripe-signature", "")

    if not settings.stripe_webhook_secret:
        logger.error("Stripe webhook secret is not configured")
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")
    try:
        event = stripe_api.Webhook.construct_event(body, signature, settings.stripe_webhook_secret)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")

    event_type = event["type"]
    session = event["data"]["object"]
    order_id = _field(_field(session, "metadata"), "orderId")

    if event_type == "checkout.session.completed" and order_id:
        path = f"/orders/{order_id}/payment-success"
        body_json = {
            "payment_id": _field(session, "payment_intent"),
            "payment_status": "paid",
            "payment_method": "credit_card",
        }
    elif event_type == "checkout.session.expired" and order_id:
        path = f"/orders/{order_id}/payment-failed"
        body_json = {"payment_status": "failed"}
    else:
        logger.info("Unhandled Stripe event: %s", event_type)
        return {"received": True}

    try:
        await backend.post(path, json=body_json, default_error="Could not update order payment")
    except (ApiError, httpx.HTTPError) as e:
        logger.error("Updating order %s after %s failed: %s", order_id, event_type, e)

    return {"received": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
