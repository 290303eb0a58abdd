import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from donation_api import models
from donation_api.core.errors import GatewayError, ServerMisconfigured, StoreError, StoreUnavailable
from donation_api.db.session import STATE_LABELS, Database, is_connection_error
from donation_api.services.payments.base import PaymentsProvider
from donation_api.services.payments.razorpay import mask_key_id

logger = logging.getLogger(__name__)


def health_summary(database: Database, payments: PaymentsProvider, settings) -> Dict[str, Any]:
    return {
        "status": "Backend is running",
        "env": settings.APP_ENV,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": STATE_LABELS.get(database.state, "Unknown"),
        "connection": database.describe(),
        "payments": payments.health_check(),
    }


def probe_gateway(payments: PaymentsProvider, settings) -> Dict[str, Any]:
    """list a single payment to prove the credentials reach the gateway."""
    logger.info("Testing payment gateway connection...")

    if payments.name == "razorpay" and not (settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET):
        raise ServerMisconfigured(
            "Razorpay credentials not configured",
            key_id="Set" if settings.RAZORPAY_KEY_ID else "Missing",
            key_secret="Set" if settings.RAZORPAY_KEY_SECRET else "Missing",
        )

    try:
        payments.list_payments(count=1)
    except Exception as e:
        logger.error(f"Razorpay test failed: {e}")
        raise GatewayError(
            "Razorpay connection failed",
            message=getattr(e, "message", str(e)),
            key_id=mask_key_id(settings.RAZORPAY_KEY_ID),
        ) from e

    return {
        "status": "Razorpay connection successful",
        "provider": payments.name,
        "key_id": mask_key_id(settings.RAZORPAY_KEY_ID),
        "test_result": "API accessible",
    }


def throwaway_row_ids(stamp: int) -> Tuple[str, str]:
    """order/payment ids for the throwaway row; unique even within one millisecond."""
    suffix = uuid4().hex[:12]
    return f"test_order_{stamp}_{suffix}", f"test_payment_{stamp}_{suffix}"


def probe_store(database: Database) -> Dict[str, Any]:
    """write and delete a throwaway donation."""
    logger.info("Testing database connection...")
    if not database.ensure_ready():
        raise StoreUnavailable("Database not connected", database_state=database.state)

    order_id, payment_id = throwaway_row_ids(int(time.time() * 1000))
    try:
        with database.session_scope() as db:
            probe = models.Donation(
                name="Test User",
                email="test@example.com",
                amount=1,
                is_recurring=False,
                order_id=order_id,
                payment_id=payment_id,
                status=models.STATUS_TEST,
            )
            db.add(probe)
            db.flush()
            logger.info(f"Test document saved with ID: {probe.id}")
            db.delete(probe)
            db.flush()
            logger.info("Test document deleted")
    except SQLAlchemyError as e:
        if is_connection_error(e):
            database.mark_disconnected(e)
            raise StoreUnavailable("Database not connected", database_state=database.state) from e
        logger.error(f"Database test failed: {e}")
        raise StoreError("Database test failed", message=str(e), database_state=database.state) from e

    return {
        "status": "Database connection working",
        "test_result": "Successfully created and deleted test document",
        "database_state": database.state,
    }
