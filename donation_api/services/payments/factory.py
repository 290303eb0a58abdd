import logging

from .base import PaymentsProvider
from .mock import MockPayments
from .razorpay import RazorpayPayments

logger = logging.getLogger(__name__)


def get_payments_provider(settings) -> PaymentsProvider:
    provider = (settings.PAYMENTS_PROVIDER or "razorpay").lower()
    if provider == "mock":
        logger.warning("PAYMENTS_PROVIDER=mock: orders and subscriptions are not real")
        return MockPayments()
    if provider != "razorpay":
        logger.warning(f"Unknown PAYMENTS_PROVIDER={provider}, falling back to razorpay")
    return RazorpayPayments(
        settings.RAZORPAY_KEY_ID,
        settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
        timeout=settings.RAZORPAY_TIMEOUT_SECONDS,
    )
