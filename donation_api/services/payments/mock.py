import time
from typing import Any, Dict
from uuid import uuid4

from .base import PaymentsProvider


class MockPayments(PaymentsProvider):
    """offline gateway for local development; mirrors Razorpay's entity shapes."""

    name = "mock"

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict[str, Any]:
        return {
            "id": f"order_mock_{uuid4().hex[:14]}",
            "entity": "order",
            "amount": amount,
            "amount_paid": 0,
            "amount_due": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "attempts": 0,
            "created_at": int(time.time()),
        }

    def create_subscription(self, plan_id: str, total_count: int, customer_notify: bool = True) -> Dict[str, Any]:
        return {
            "id": f"sub_mock_{uuid4().hex[:14]}",
            "entity": "subscription",
            "plan_id": plan_id,
            "total_count": total_count,
            "customer_notify": customer_notify,
            "status": "created",
            "paid_count": 0,
            "remaining_count": total_count,
            "created_at": int(time.time()),
        }

    def list_payments(self, count: int = 1) -> Dict[str, Any]:
        return {"entity": "collection", "count": 0, "items": []}

    def health_check(self) -> Dict[str, str]:
        return {"status": "configured", "provider": self.name, "note": "Using mock payment provider"}
