from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CreateOrderRequest(BaseModel):
    # checked by the order service so every bad value reads "Invalid amount"
    amount: Optional[Any] = None


class CreateSubscriptionRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    total_count: Optional[Any] = None


class SavePaymentRequest(BaseModel):
    """fields the checkout widget hands back to the frontend after payment."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    payment_id: Optional[str] = Field(None, alias="paymentId")
    order_id: Optional[str] = Field(None, alias="orderId")
    subscription_id: Optional[str] = Field(None, alias="subscriptionId")
    signature: Optional[str] = None
    is_recurring: Optional[bool] = Field(False, alias="isRecurring")
    amount: Optional[Any] = None
    name: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    message: Optional[str] = None


class DonationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str
    email: str
    contact: str
    address: str
    pincode: str
    message: str
    amount: float
    is_recurring: bool
    order_id: Optional[str] = None
    subscription_id: Optional[str] = None
    payment_id: str
    status: str
    created_at: datetime


class DonationListResponse(BaseModel):
    success: bool = True
    count: int
    donations: List[DonationOut]


class SavePaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    message: str = "Donation verified and saved successfully"
    donation_id: str
    payment_id: str


class CreateSubscriptionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    subscription_id: str
    subscription: Dict[str, Any]
