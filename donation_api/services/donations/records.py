import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from donation_api import models
from donation_api.core.errors import (
    DuplicatePayment,
    InvalidInput,
    ServerMisconfigured,
    SignatureInvalid,
    StoreError,
    StoreUnavailable,
)
from donation_api.core.security import verify_payment_signature
from donation_api.db.session import Database, is_connection_error
from donation_api.schemas.donations import SavePaymentRequest
from donation_api.services.donations.checkout import parse_amount

logger = logging.getLogger(__name__)

# matches Donation.amount, Numeric(12, 2)
AMOUNT_DIGITS = 12
AMOUNT_PLACES = 2


def _text(value: Optional[Any]) -> str:
    return str(value) if value else ""


def _check_preconditions(payload: SavePaymentRequest) -> bool:
    if not payload.payment_id or not payload.signature:
        logger.warning("save-payment: missing paymentId or signature")
        raise InvalidInput("Payment verification failed: Missing required fields")

    is_recurring = bool(payload.is_recurring)
    if is_recurring and not payload.subscription_id:
        logger.warning("save-payment: missing subscriptionId for recurring payment")
        raise InvalidInput("Missing subscriptionId for recurring payment")
    if not is_recurring and not payload.order_id:
        logger.warning("save-payment: missing orderId for one-time payment")
        raise InvalidInput("Missing orderId for one-time payment")
    return is_recurring


def _store_unavailable(payment_id: str) -> StoreUnavailable:
    return StoreUnavailable(
        "Database not available",
        message="Payment verified but database not available for saving",
        paymentId=payment_id,
    )


def save_payment(database: Database, settings, payload: SavePaymentRequest) -> Dict[str, str]:
    """
    Verify the checkout signature, then record the donation as completed.

    Nothing is written unless the signature matches. A store that is not
    ready, or drops during the write, yields StoreUnavailable even though
    the payment itself verified.
    """
    is_recurring = _check_preconditions(payload)
    amount = parse_amount(payload.amount, max_digits=AMOUNT_DIGITS, decimal_places=AMOUNT_PLACES)

    secret = settings.RAZORPAY_KEY_SECRET
    if not secret:
        logger.error("RAZORPAY_KEY_SECRET not configured, cannot verify payments")
        raise ServerMisconfigured("Payment verification is not configured on server")

    verified = verify_payment_signature(
        secret,
        payload.signature,
        payload.payment_id,
        order_id=payload.order_id,
        subscription_id=payload.subscription_id,
        is_recurring=is_recurring,
    )
    if not verified:
        logger.warning(f"Payment verification failed: signature mismatch for {payload.payment_id}")
        raise SignatureInvalid("Invalid payment signature")

    logger.info(f"Payment signature verified for {payload.payment_id}")

    if not database.ensure_ready():
        logger.warning(f"Database not ready, payment {payload.payment_id} verified but not saved")
        raise _store_unavailable(payload.payment_id)

    donation = models.Donation(
        name=_text(payload.name),
        email=_text(payload.email),
        contact=_text(payload.contact),
        address=_text(payload.address),
        pincode=_text(payload.pincode),
        message=_text(payload.message),
        amount=amount,
        is_recurring=is_recurring,
        order_id=None if is_recurring else str(payload.order_id),
        subscription_id=str(payload.subscription_id) if is_recurring else None,
        payment_id=str(payload.payment_id),
        status=models.STATUS_COMPLETED,
    )

    try:
        with database.session_scope() as db:
            db.add(donation)
            db.flush()
    except IntegrityError as e:
        if "payment_id" in str(e.orig).lower():
            logger.warning(f"Payment {payload.payment_id} already recorded")
            raise DuplicatePayment(
                f"Payment {payload.payment_id} has already been recorded",
                paymentId=payload.payment_id,
            ) from e
        logger.error(f"Error saving payment {payload.payment_id}: {e.orig}")
        raise StoreError(str(e.orig), details=type(e).__name__) from e
    except SQLAlchemyError as e:
        if is_connection_error(e):
            database.mark_disconnected(e)
            raise _store_unavailable(payload.payment_id) from e
        logger.error(f"Error saving payment {payload.payment_id}: {e}")
        raise StoreError(str(e), details=type(e).__name__) from e

    logger.info(f"Donation saved to database with ID: {donation.id}")
    return {"donation_id": donation.id, "payment_id": donation.payment_id}


def list_donations(database: Database) -> List[models.Donation]:
    """every donation, newest first."""
    if not database.ensure_ready():
        raise StoreUnavailable("Database not connected", database_state=database.state)

    try:
        with database.session_scope() as db:
            donations = (
                db.query(models.Donation)
                .order_by(models.Donation.created_at.desc(), models.Donation.id.desc())
                .all()
            )
    except SQLAlchemyError as e:
        if is_connection_error(e):
            database.mark_disconnected(e)
            raise StoreUnavailable("Database not connected", database_state=database.state) from e
        logger.error(f"Error fetching donations: {e}")
        raise StoreError(str(e)) from e

    logger.info(f"Fetched {len(donations)} donations from database")
    return donations
