import logging
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from donation_api.core.errors import GatewayError, InvalidInput, ServerMisconfigured
from donation_api.services.payments.base import PaymentsProvider

logger = logging.getLogger(__name__)


def parse_amount(value: Any, max_digits: Optional[int] = None, decimal_places: Optional[int] = None) -> Decimal:
    """
    positive finite number in rupees; numeric strings are accepted.

    With max_digits/decimal_places the amount must also fit a
    Numeric(max_digits, decimal_places) column exactly, without rounding.
    """
    if value is None or isinstance(value, bool):
        raise InvalidInput("Invalid amount")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput("Invalid amount")
    if not amount.is_finite() or amount <= 0:
        raise InvalidInput("Invalid amount")

    if max_digits is not None:
        places = decimal_places or 0
        if amount >= Decimal(10) ** (max_digits - places):
            raise InvalidInput("Invalid amount")
        if amount != amount.quantize(Decimal(1).scaleb(-places)):
            raise InvalidInput("Invalid amount")
    return amount


def to_minor_units(amount: Decimal, multiplier: int) -> int:
    minor = int((amount * multiplier).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor <= 0:
        raise InvalidInput("Invalid amount")
    return minor


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number <= 0 or number != number.to_integral_value():
        return None
    return int(number)


def resolve_total_count(requested: Any, configured: Any, fallback: int = 12) -> int:
    """request body value, else server default, else the fixed fallback."""
    return _positive_int(requested) or _positive_int(configured) or fallback


def _receipt() -> str:
    return f"receipt_donation_{int(time.time() * 1000)}"


def create_order(payments: PaymentsProvider, settings, amount: Any) -> Dict[str, Any]:
    try:
        value = parse_amount(amount)
        minor = to_minor_units(value, settings.AMOUNT_SUBUNIT_MULTIPLIER)
    except InvalidInput:
        logger.warning(f"create-order: invalid amount received: {amount!r}")
        raise

    logger.info(f"Creating order for amount: {minor} minor units ({value} {settings.CURRENCY})")
    try:
        order = payments.create_order(amount=minor, currency=settings.CURRENCY, receipt=_receipt())
    except GatewayError:
        raise
    except Exception as e:
        logger.error(f"Error creating one-time order: {e}")
        raise GatewayError(str(e)) from e

    if not order:
        logger.error("create-order: gateway returned no order")
        raise GatewayError("Razorpay order creation failed")

    logger.info(f"Order created: {order.get('id')}")
    # the frontend needs id, amount and currency to open checkout
    return order


def create_subscription(
    payments: PaymentsProvider,
    settings,
    name: Optional[str] = None,
    email: Optional[str] = None,
    contact: Optional[str] = None,
    total_count: Any = None,
) -> Dict[str, Any]:
    plan_id = settings.RAZORPAY_PLAN_ID
    if not plan_id:
        logger.error("RAZORPAY_PLAN_ID not configured")
        raise ServerMisconfigured("Plan ID not configured on server")

    count = resolve_total_count(
        total_count, settings.RAZORPAY_SUBSCRIPTION_CYCLES, settings.DEFAULT_SUBSCRIPTION_CYCLES
    )
    logger.info(f"Creating subscription for {name or 'anonymous'} <{email or '-'}>, total_count={count}")

    try:
        subscription = payments.create_subscription(plan_id=plan_id, total_count=count, customer_notify=True)
    except GatewayError:
        raise
    except Exception as e:
        logger.error(f"Error creating subscription: {e}")
        raise GatewayError(str(e)) from e

    if not subscription or not subscription.get("id"):
        raise GatewayError("Razorpay subscription creation failed")

    logger.info(f"Subscription created: {subscription['id']}")
    return {"subscription_id": subscription["id"], "subscription": subscription}
