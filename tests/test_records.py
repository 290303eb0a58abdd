from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from donation_api import models
from donation_api.core.errors import (
    DuplicatePayment,
    InvalidInput,
    ServerMisconfigured,
    SignatureInvalid,
    StoreError,
    StoreUnavailable,
)
from donation_api.core.security import compute_signature
from donation_api.db.session import DISCONNECTED
from donation_api.schemas.donations import SavePaymentRequest
from donation_api.services.donations.records import list_donations, save_payment


def _count(database) -> int:
    with database.session_scope() as db:
        return db.query(models.Donation).count()


def _one_time(settings, **overrides) -> SavePaymentRequest:
    fields = {
        "paymentId": "pay_1",
        "orderId": "order_1",
        "signature": compute_signature(settings.RAZORPAY_KEY_SECRET, "order_1|pay_1"),
        "isRecurring": False,
        "amount": 500,
        "name": "Asha",
        "email": "asha@example.com",
        "contact": 9876543210,
        "address": "12 MG Road",
        "pincode": "560001",
        "message": "Keep it up",
    }
    fields.update(overrides)
    return SavePaymentRequest(**fields)


def _recurring(settings, **overrides) -> SavePaymentRequest:
    fields = {
        "paymentId": "pay_2",
        "subscriptionId": "sub_2",
        "signature": compute_signature(settings.RAZORPAY_KEY_SECRET, "pay_2|sub_2"),
        "isRecurring": True,
        "amount": "100",
    }
    fields.update(overrides)
    return SavePaymentRequest(**fields)


def test_one_time_payment_is_recorded(database, settings):
    result = save_payment(database, settings, _one_time(settings))

    assert result["payment_id"] == "pay_1"
    with database.session_scope() as db:
        donation = db.get(models.Donation, result["donation_id"])
        assert donation.status == "completed"
        assert donation.order_id == "order_1"
        assert donation.subscription_id is None
        assert donation.is_recurring is False
        assert donation.amount == Decimal("500")
        assert donation.contact == "9876543210"
        assert donation.created_at is not None


def test_recurring_payment_is_recorded(database, settings):
    result = save_payment(database, settings, _recurring(settings))

    with database.session_scope() as db:
        donation = db.get(models.Donation, result["donation_id"])
        assert donation.subscription_id == "sub_2"
        assert donation.order_id is None
        assert donation.is_recurring is True
        assert donation.name == ""
        assert donation.message == ""


def test_one_time_ignores_stray_subscription_id(database, settings):
    result = save_payment(database, settings, _one_time(settings, subscriptionId="sub_x"))

    with database.session_scope() as db:
        assert db.get(models.Donation, result["donation_id"]).subscription_id is None


def test_tampered_signature_persists_nothing(database, settings):
    good = compute_signature(settings.RAZORPAY_KEY_SECRET, "order_1|pay_1")
    tampered = ("0" if good[0] != "0" else "1") + good[1:]

    with pytest.raises(SignatureInvalid):
        save_payment(database, settings, _one_time(settings, signature=tampered))
    assert _count(database) == 0


def test_recurring_signature_over_one_time_order_is_rejected(database, settings):
    wrong_order = compute_signature(settings.RAZORPAY_KEY_SECRET, "sub_2|pay_2")

    with pytest.raises(SignatureInvalid):
        save_payment(database, settings, _recurring(settings, signature=wrong_order))
    assert _count(database) == 0


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"paymentId": None}, "Payment verification failed: Missing required fields"),
        ({"signature": ""}, "Payment verification failed: Missing required fields"),
        ({"orderId": None}, "Missing orderId for one-time payment"),
        ({"amount": 0}, "Invalid amount"),
        ({"amount": None}, "Invalid amount"),
    ],
)
def test_missing_fields_are_invalid_input(database, settings, overrides, message):
    with pytest.raises(InvalidInput) as exc:
        save_payment(database, settings, _one_time(settings, **overrides))
    assert exc.value.message == message
    assert _count(database) == 0


def test_recurring_requires_subscription_id(database, settings):
    with pytest.raises(InvalidInput) as exc:
        save_payment(database, settings, _recurring(settings, subscriptionId=None, orderId="order_1"))
    assert exc.value.message == "Missing subscriptionId for recurring payment"


def test_missing_secret_is_misconfiguration(database, settings):
    payload = _one_time(settings)
    settings.RAZORPAY_KEY_SECRET = None

    with pytest.raises(ServerMisconfigured):
        save_payment(database, settings, payload)


def test_store_unavailable_after_verification(offline_database, settings):
    with pytest.raises(StoreUnavailable) as exc:
        save_payment(offline_database, settings, _one_time(settings))

    body = exc.value.to_dict()
    assert body["message"] == "Payment verified but database not available for saving"
    assert body["success"] is False


def test_bad_signature_reported_before_store_state(offline_database, settings):
    with pytest.raises(SignatureInvalid):
        save_payment(offline_database, settings, _one_time(settings, signature="deadbeef"))


def test_duplicate_payment_id_is_rejected(database, settings):
    save_payment(database, settings, _one_time(settings))

    with pytest.raises(DuplicatePayment):
        save_payment(database, settings, _one_time(settings))
    assert _count(database) == 1


def test_list_donations_newest_first(database):
    base = datetime(2025, 1, 1, 12, 0, 0)
    with database.session_scope() as db:
        for i, offset in enumerate([5, 1, 9, 3]):
            db.add(models.Donation(
                amount=10 + i,
                is_recurring=False,
                order_id=f"order_{i}",
                payment_id=f"pay_{i}",
                status="completed",
                created_at=base + timedelta(minutes=offset),
            ))

    donations = list_donations(database)

    stamps = [d.created_at for d in donations]
    assert len(donations) == 4
    assert all(a > b for a, b in zip(stamps, stamps[1:]))
    assert [d.payment_id for d in donations] == ["pay_2", "pay_0", "pay_3", "pay_1"]


def test_list_donations_needs_store(offline_database):
    with pytest.raises(StoreUnavailable):
        list_donations(offline_database)


@pytest.mark.parametrize("amount", ["0.001", 1e12, "10000000000", "12.345"])
def test_amount_must_fit_the_amount_column(database, settings, amount):
    with pytest.raises(InvalidInput) as exc:
        save_payment(database, settings, _one_time(settings, amount=amount))
    assert exc.value.message == "Invalid amount"
    assert _count(database) == 0


@pytest.mark.parametrize("amount, stored", [("10.50", Decimal("10.50")), ("9999999999.99", Decimal("9999999999.99"))])
def test_amount_at_column_limits_is_recorded(database, settings, amount, stored):
    result = save_payment(database, settings, _one_time(settings, amount=amount))

    with database.session_scope() as db:
        assert db.get(models.Donation, result["donation_id"]).amount == stored


def _session_raising(database, exc):
    session = MagicMock()
    session.flush.side_effect = exc
    session.query.side_effect = exc
    database.SessionLocal = lambda: session
    return session


def test_write_failure_is_store_error(database, settings):
    session = _session_raising(database, SQLAlchemyError("boom"))

    with pytest.raises(StoreError) as exc:
        save_payment(database, settings, _one_time(settings))

    assert exc.value.status_code == 500
    assert exc.value.to_dict() == {"success": False, "error": "boom", "details": "SQLAlchemyError"}
    session.rollback.assert_called_once()
    assert database.is_ready


def test_read_failure_is_store_error(database):
    _session_raising(database, SQLAlchemyError("boom"))

    with pytest.raises(StoreError) as exc:
        list_donations(database)
    assert exc.value.message == "boom"
    assert database.is_ready


def test_connection_lost_during_write_marks_store_down(database, settings):
    _session_raising(database, OperationalError("INSERT", {}, Exception("server closed the connection")))

    with pytest.raises(StoreUnavailable) as exc:
        save_payment(database, settings, _one_time(settings))

    assert exc.value.status_code == 503
    assert exc.value.to_dict()["paymentId"] == "pay_1"
    assert database.state == DISCONNECTED


def test_connection_lost_during_read_marks_store_down(database):
    _session_raising(database, OperationalError("SELECT", {}, Exception("server closed the connection")))

    with pytest.raises(StoreUnavailable):
        list_donations(database)
    assert database.state == DISCONNECTED
    # inside the retry interval no reconnect is attempted
    with pytest.raises(StoreUnavailable):
        list_donations(database)
