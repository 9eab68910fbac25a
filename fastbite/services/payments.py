# fastbite/services/payments.py
"""
Payment redirects and status checks.

The backend creates provider sessions (Stripe Checkout, MoMo, VNPay) and hands
back a URL to send the customer to. Status checks come back in several shapes
depending on which backend path answered; ``interpret_stripe_status`` folds
them into ``{"success", "status", "payment"}``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..schemas import PaymentMethod
from ..settings import settings
from .client import ApiClient, ApiError

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
FAILED = "failed"


def _failed() -> Dict[str, Any]:
    return {"success": False, "status": FAILED, "payment": None}


def _as_int(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def interpret_stripe_status(
    data: Any,
    session_id: str,
    fallback_order_id: int | None = None,
) -> Dict[str, Any]:
    """Normalise a ``check-status`` body; ``fallback_order_id`` fills in a missing order id."""
    if not isinstance(data, dict):
        return _failed()

    order = data.get("order")
    if data.get("success") and isinstance(order, dict) and order.get("id"):
        return {
            "success": True,
            "status": SUCCEEDED,
            "payment": {
                "orderId": order["id"],
                "status": order.get("status"),
                "paymentStatus": order.get("paymentStatus"),
            },
        }

    if data.get("orderId"):
        return {"success": True, "status": SUCCEEDED, "payment": {"orderId": _as_int(data["orderId"])}}

    # raw Stripe checkout session
    if data.get("id") == session_id:
        if data.get("payment_status") == "paid" or data.get("status") == "complete":
            metadata = data.get("metadata") or {}
            return {
                "success": True,
                "status": SUCCEEDED,
                "payment": {
                    "orderId": _as_int(metadata.get("orderId")) or fallback_order_id,
                    "amount": data.get("amount_total"),
                    "paymentMethod": PaymentMethod.STRIPE.value,
                    "paymentId": data.get("id"),
                },
            }
        return {"success": False, "status": str(data.get("payment_status") or FAILED), "payment": None}

    if "success" in data:
        payment = data.get("payment") or {}
        if data["success"] is True and not payment.get("orderId"):
            return {**data, "payment": {**payment, "orderId": fallback_order_id}}
        return data

    return {
        "success": True,
        "status": data.get("status") or SUCCEEDED,
        "payment": {**data, "orderId": fallback_order_id},
    }


# -------------------
# Backend-created sessions
# -------------------
async def create_stripe_checkout_session(api: ApiClient, order_id: int) -> Dict[str, Any]:
    """Returns ``{success, sessionId, url}``."""
    return await api.post(
        "/payments/stripe/create-checkout-session",
        json={"orderId": order_id},
        default_error="Could not create Stripe checkout session",
    )


async def create_momo_payment(api: ApiClient, order_id: int) -> Dict[str, Any]:
    return await api.post(
        "/payments/momo/create-payment",
        json={"orderId": order_id},
        default_error="Could not create MoMo payment",
    )


async def create_vnpay_payment(api: ApiClient, order_id: int) -> Dict[str, Any]:
    return await api.post(
        "/payments/vnpay/create-payment",
        json={"orderId": order_id},
        default_error="Could not create VNPay payment",
    )


async def start_payment(api: ApiClient, method: PaymentMethod | str, order_id: int) -> Optional[str]:
    """Redirect URL for an online payment method; ``None`` for cash on delivery."""
    method = PaymentMethod(getattr(method, "value", method))
    if method == PaymentMethod.COD:
        return None
    if method == PaymentMethod.STRIPE:
        data = await create_stripe_checkout_session(api, order_id)
        url = data.get("url")
    elif method == PaymentMethod.MOMO:
        data = await create_momo_payment(api, order_id)
        url = data.get("payUrl")
    else:
        data = await create_vnpay_payment(api, order_id)
        url = data.get("payUrl")
    if not url:
        raise ApiError(f"No payment URL returned for {method.value}", payload=data)
    return url


# -------------------
# Status checks
# -------------------
async def check_payment_status(
    api: ApiClient,
    session_id: str,
    fallback_order_id: int | None = None,
) -> Dict[str, Any]:
    """Stripe session status; never raises."""
    if not api.token():
        logger.warning("Payment status check for %s skipped: no token", session_id)
        return _failed()
    try:
        data = await api.get(f"/payments/stripe/check-status/{session_id}")
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Payment status check for %s failed: %s", session_id, e)
        return _failed()
    if isinstance(data, str):
        # 2xx with a body that is not JSON
        return {"success": True, "status": SUCCEEDED, "payment": {"orderId": fallback_order_id}}
    return interpret_stripe_status(data, session_id, fallback_order_id)


async def check_momo_status(api: ApiClient, order_id: int) -> Dict[str, Any]:
    return await api.get(
        f"/payments/momo/check-status/{order_id}",
        default_error="Could not check MoMo payment status",
    )


async def check_vnpay_status(api: ApiClient, order_id: int) -> Dict[str, Any]:
    return await api.get(
        f"/payments/vnpay/check-status/{order_id}",
        default_error="Could not check VNPay payment status",
    )


async def verify_payment(api: ApiClient, session_id: str) -> bool:
    try:
        data = await api.post("/payments/verify", json={"sessionId": session_id})
    except ApiError:
        return False
    return bool(isinstance(data, dict) and data.get("success"))


async def update_order_payment(api: ApiClient, order_id: int, payment_info: Dict[str, Any]) -> Dict[str, Any]:
    return await api.put(
        f"/orders/{order_id}/payment",
        json=payment_info,
        default_error="Could not update order payment",
    )


async def create_stripe_checkout(api: ApiClient, payment_data: Dict[str, Any], site_url: str | None = None) -> str:
    """Checkout session through the storefront's own ``/api/create-checkout-session``."""
    site = api.with_base(f"{(site_url or settings.site_url).rstrip('/')}/api")
    data = await site.post(
        "/create-checkout-session",
        json=payment_data,
        default_error="Could not create checkout session",
    )
    return data["checkoutUrl"]
