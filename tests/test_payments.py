from decimal import Decimal

import pytest

from finances.models import RevenueRecognition
from sales.ledger import derive_payment_status, is_paid, verify_payment
from sales.models import Payment, Sale
from backend_renting.exceptions import InvalidState


@pytest.fixture
def booked_sale(staff_client, vehicle):
    """4 days at 500 plus a 100 wash: total 2100, one pending payment of 2100."""
    response = staff_client.post("/api/sales", {
        "vehicle": str(vehicle.id),
        "customer_name": "Sita Sharma",
        "date_of_delivery": "2030-03-01T09:00:00Z",
        "return_date": "2030-03-05T09:00:00Z",
        "charges": [{"charge_type": "wash", "amount": "100"}],
        "payments": [{"amount_paid": "2100", "payment_type": "booking"}],
    }, format="json")
    assert response.status_code == 201
    sale = Sale.objects.get(pk=response.data["data"]["id"])
    assert sale.total_amount == Decimal("2100.00")
    return sale


def verify_url(sale, payment, action="verify"):
    return f"/api/payments/{sale.id}/{payment.id}/{action}"


@pytest.mark.parametrize("verified, total, expected", [
    (Decimal("0"), Decimal("2100"), "unpaid"),
    (Decimal("500"), Decimal("2100"), "partial"),
    (Decimal("2099.98"), Decimal("2100"), "partial"),
    (Decimal("2099.99"), Decimal("2100"), "paid"),
    (Decimal("2200"), Decimal("2100"), "paid"),
])
def test_derive_payment_status(verified, total, expected):
    assert derive_payment_status(verified, total, epsilon=Decimal("0.01")) == expected


def test_is_paid_uses_configured_epsilon(settings):
    settings.PAYMENT_EPSILON = "1.00"
    assert is_paid(Decimal("2099.00"), Decimal("2100"))


def test_verifying_full_payment_marks_sale_paid(admin_client, booked_sale):
    payment = booked_sale.payments.get()

    response = admin_client.post(verify_url(booked_sale, payment), {"status": "Completed"}, format="json")

    assert response.status_code == 200
    assert response.data["data"]["sale_payment_status"] == "paid"
    payment.refresh_from_db()
    assert payment.payment_status == "Completed"
    assert payment.verified_by_admin
    assert payment.verified_by.username == "admin"
    assert payment.verified_at is not None

    booked_sale.refresh_from_db()
    assert booked_sale.payment_status == "paid"

    recognition = RevenueRecognition.objects.get(sale=booked_sale)
    assert recognition.total_amount == Decimal("2100.00")
    assert recognition.daily_amount == Decimal("420.0000")


def test_partial_then_full(admin_client, staff_client, booked_sale):
    booked_sale.payments.all().delete()
    staff_client.post(f"/api/sales/{booked_sale.id}/payments",
                      [{"amount_paid": "1000"}, {"amount_paid": "1100"}], format="json")
    first, second = Payment.objects.filter(sale=booked_sale).order_by("amount_paid")

    admin_client.post(verify_url(booked_sale, first), {"status": "Completed"}, format="json")
    booked_sale.refresh_from_db()
    assert booked_sale.payment_status == "partial"

    admin_client.post(verify_url(booked_sale, second), {"status": "Completed"}, format="json")
    booked_sale.refresh_from_db()
    assert booked_sale.payment_status == "paid"


def test_failed_payment_does_not_count(admin_client, booked_sale):
    payment = booked_sale.payments.get()

    response = admin_client.post(verify_url(booked_sale, payment), {"status": "Failed"}, format="json")

    assert response.status_code == 200
    booked_sale.refresh_from_db()
    assert booked_sale.payment_status == "unpaid"
    assert not RevenueRecognition.objects.filter(sale=booked_sale).exists()


def test_staff_cannot_verify(staff_client, booked_sale):
    payment = booked_sale.payments.get()

    response = staff_client.post(verify_url(booked_sale, payment), {"status": "Completed"}, format="json")

    assert response.status_code == 403
    payment.refresh_from_db()
    assert payment.payment_status == "Pending"


def test_only_pending_payments_can_be_verified(admin_user, admin_client, booked_sale):
    payment = booked_sale.payments.get()
    admin_client.post(verify_url(booked_sale, payment), {"status": "Completed"}, format="json")

    response = admin_client.post(verify_url(booked_sale, payment), {"status": "Failed"}, format="json")
    assert response.status_code == 400

    with pytest.raises(InvalidState):
        verify_payment(booked_sale.id, payment.id, admin_user, "Completed")


def test_verification_status_must_be_known(admin_client, booked_sale):
    payment = booked_sale.payments.get()
    response = admin_client.post(verify_url(booked_sale, payment), {"status": "Refunded"}, format="json")
    assert response.status_code == 400


def test_payment_of_another_sale_is_not_found(admin_client, booked_sale, make_sale):
    other = make_sale(days=2)
    payment = booked_sale.payments.get()
    response = admin_client.post(verify_url(other, payment), {"status": "Completed"}, format="json")
    assert response.status_code == 404


def test_cancel_payment(admin_client, staff_client, booked_sale):
    payment = booked_sale.payments.get()

    assert staff_client.post(verify_url(booked_sale, payment, "cancel"), {}, format="json").status_code == 403

    response = admin_client.post(
        verify_url(booked_sale, payment, "cancel"), {"remark": "Duplicate entry"}, format="json")
    assert response.status_code == 200
    payment.refresh_from_db()
    assert payment.payment_status == "Cancelled"
    assert payment.remark == "Duplicate entry"

    again = admin_client.post(verify_url(booked_sale, payment, "cancel"), {}, format="json")
    assert again.status_code == 400


def test_added_charge_reopens_paid_sale(admin_client, booked_sale):
    payment = booked_sale.payments.get()
    admin_client.post(verify_url(booked_sale, payment), {"status": "Completed"}, format="json")

    admin_client.post(f"/api/sales/{booked_sale.id}/charges",
                      {"charge_type": "damage", "amount": "400"}, format="json")

    booked_sale.refresh_from_db()
    assert booked_sale.payment_status == "partial"
    assert not RevenueRecognition.objects.filter(sale=booked_sale).exists()


def test_failed_recognition_rolls_back_verification(admin_user, booked_sale, monkeypatch):
    from finances import revenue

    def broken_recognition(sale):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(revenue, "recognize_sale_revenue", broken_recognition)
    payment = booked_sale.payments.get()

    with pytest.raises(RuntimeError):
        verify_payment(booked_sale.id, payment.id, admin_user, "Completed")

    payment.refresh_from_db()
    booked_sale.refresh_from_db()
    assert payment.payment_status == "Pending"
    assert not payment.verified_by_admin
    assert booked_sale.payment_status == "unpaid"
    assert not RevenueRecognition.objects.filter(sale=booked_sale).exists()
