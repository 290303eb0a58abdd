import hmac
import hashlib
from typing import Optional


def build_signature_payload(
    payment_id: str,
    order_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    is_recurring: bool = False,
) -> str:
    """
    Message the gateway signs after checkout.

    Subscriptions sign "payment_id|subscription_id", one-time orders sign
    "order_id|payment_id". The operand order differs on purpose.
    """
    if is_recurring:
        return f"{payment_id}|{subscription_id}"
    return f"{order_id}|{payment_id}"


def compute_signature(secret: str, message: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_payment_signature(
    secret: str,
    signature: str,
    payment_id: str,
    order_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    is_recurring: bool = False,
) -> bool:
    message = build_signature_payload(
        payment_id,
        order_id=order_id,
        subscription_id=subscription_id,
        is_recurring=is_recurring,
    )
    expected = compute_signature(secret, message)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))
