from typing import Any, Dict

from fastapi import APIRouter, Depends

from donation_api.api.deps import get_database, get_payments, get_settings
from donation_api.db.session import Database
from donation_api.schemas.donations import (
    CreateOrderRequest,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    DonationListResponse,
    DonationOut,
    SavePaymentRequest,
    SavePaymentResponse,
)
from donation_api.services.donations import checkout, records
from donation_api.services.payments.base import PaymentsProvider

router = APIRouter(tags=["donations"])


@router.post("/create-order")
def create_order(
    payload: CreateOrderRequest,
    payments: PaymentsProvider = Depends(get_payments),
    settings=Depends(get_settings),
) -> Dict[str, Any]:
    return checkout.create_order(payments, settings, payload.amount)


@router.post("/create-subscription", response_model=CreateSubscriptionResponse)
def create_subscription(
    payload: CreateSubscriptionRequest,
    payments: PaymentsProvider = Depends(get_payments),
    settings=Depends(get_settings),
):
    result = checkout.create_subscription(
        payments,
        settings,
        name=payload.name,
        email=payload.email,
        contact=payload.contact,
        total_count=payload.total_count,
    )
    return CreateSubscriptionResponse(**result)


@router.post("/save-payment", response_model=SavePaymentResponse)
def save_payment(
    payload: SavePaymentRequest,
    database: Database = Depends(get_database),
    settings=Depends(get_settings),
):
    saved = records.save_payment(database, settings, payload)
    return SavePaymentResponse(donation_id=saved["donation_id"], payment_id=saved["payment_id"])


@router.get("/donations", response_model=DonationListResponse)
def list_donations(database: Database = Depends(get_database)):
    donations = records.list_donations(database)
    return DonationListResponse(
        count=len(donations),
        donations=[DonationOut.model_validate(d) for d in donations],
    )
