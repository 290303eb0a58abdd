from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from donation_api.core.config import Settings
from donation_api.db.session import Database
from donation_api.main import create_app
from donation_api.services.payments.base import PaymentsProvider

SECRET = "test_key_secret"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        ALLOWED_ORIGINS=["http://localhost:5173"],
        PAYMENTS_PROVIDER="razorpay",
        RAZORPAY_KEY_ID="rzp_test_ABCDEFGHIJKL",
        RAZORPAY_KEY_SECRET=SECRET,
        RAZORPAY_PLAN_ID="plan_test_monthly",
        RAZORPAY_SUBSCRIPTION_CYCLES=None,
        AMOUNT_SUBUNIT_MULTIPLIER=10,
    )


@pytest.fixture
def database():
    db = Database("sqlite://")
    assert db.connect()
    yield db
    db.dispose()


@pytest.fixture
def offline_database():
    """a store that never connected"""
    return Database("sqlite://")


@pytest.fixture
def payments():
    gateway = MagicMock(spec=PaymentsProvider)
    gateway.name = "razorpay"
    gateway.create_order.side_effect = lambda amount, currency, receipt: {
        "id": "order_test_1",
        "entity": "order",
        "amount": amount,
        "currency": currency,
        "receipt": receipt,
        "status": "created",
    }
    gateway.create_subscription.side_effect = lambda plan_id, total_count, customer_notify=True: {
        "id": "sub_test_1",
        "entity": "subscription",
        "plan_id": plan_id,
        "total_count": total_count,
        "status": "created",
    }
    gateway.list_payments.return_value = {"entity": "collection", "count": 0, "items": []}
    gateway.health_check.return_value = {"status": "configured", "provider": "razorpay"}
    return gateway


@pytest.fixture
def client(settings, database, payments):
    app = create_app(settings=settings, database=database, payments=payments)
    return TestClient(app)


@pytest.fixture
def offline_client(settings, offline_database, payments):
    app = create_app(settings=settings, database=offline_database, payments=payments)
    return TestClient(app)
