from fastapi import APIRouter, Depends

from donation_api.api.deps import get_database, get_payments, get_settings
from donation_api.db.session import Database
from donation_api.services.donations import diagnostics
from donation_api.services.payments.base import PaymentsProvider

router = APIRouter(tags=["diagnostics"])


@router.get("/")
def health(
    database: Database = Depends(get_database),
    payments: PaymentsProvider = Depends(get_payments),
    settings=Depends(get_settings),
):
    return diagnostics.health_summary(database, payments, settings)


@router.get("/test-razorpay")
def test_razorpay(payments: PaymentsProvider = Depends(get_payments), settings=Depends(get_settings)):
    """round-trip to the gateway with the configured credentials."""
    return diagnostics.probe_gateway(payments, settings)


@router.get("/test-db")
def test_db(database: Database = Depends(get_database)):
    """write and delete a probe donation."""
    return diagnostics.probe_store(database)
