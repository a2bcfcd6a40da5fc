from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from rest_framework.exceptions import ValidationError

from finances.models import Expense
from finances.revenue import period_window, recognized_amount
from sales.models import Sale


def entry(total, start, end):
    days = (end - start).days + 1
    return SimpleNamespace(
        total_amount=Decimal(total), start_date=start, end_date=end,
        daily_amount=Decimal(total) / days)


class TestRecognizedAmount:
    rental = entry("1000", date(2024, 1, 29), date(2024, 2, 2))  # 5 days, 200/day

    def test_prorated_splits_across_months(self):
        january = recognized_amount(self.rental, date(2024, 1, 1), date(2024, 1, 31))
        february = recognized_amount(self.rental, date(2024, 2, 1), date(2024, 2, 29))
        assert january == Decimal("600.00")
        assert february == Decimal("400.00")

    def test_window_covering_rental_gets_everything(self):
        assert recognized_amount(self.rental, date(2024, 1, 1), date(2024, 12, 31)) == Decimal("1000")

    def test_start_and_end_methods(self):
        assert recognized_amount(self.rental, date(2024, 1, 1), date(2024, 1, 31), "start") == Decimal("1000")
        assert recognized_amount(self.rental, date(2024, 1, 1), date(2024, 1, 31), "end") == 0
        assert recognized_amount(self.rental, date(2024, 2, 1), date(2024, 2, 29), "end") == Decimal("1000")

    def test_disjoint_window(self):
        assert recognized_amount(self.rental, date(2024, 3, 1), date(2024, 3, 31)) == 0


class TestPeriodWindow:
    today = date(2024, 2, 14)

    def test_day_defaults_to_today(self):
        assert period_window("day", today=self.today) == (self.today, self.today)

    def test_month_accepts_short_and_full_dates(self):
        expected = (date(2024, 2, 1), date(2024, 2, 29))
        assert period_window("month", "2024-02", today=self.today) == expected
        assert period_window("month", "2024-02-20", today=self.today) == expected

    def test_year(self):
        assert period_window("year", "2023") == (date(2023, 1, 1), date(2023, 12, 31))

    def test_custom_needs_both_bounds(self):
        with pytest.raises(ValidationError):
            period_window("custom", start_date="2024-01-01")
        with pytest.raises(ValidationError):
            period_window("custom", start_date="2024-02-01", end_date="2024-01-01")
        assert period_window("custom", start_date="2024-01-01", end_date="2024-01-10") == (
            date(2024, 1, 1), date(2024, 1, 10))

    def test_unknown_period(self):
        with pytest.raises(ValidationError):
            period_window("week")


@pytest.fixture
def paid_sale(admin_client, vehicle):
    response = admin_client.post("/api/sales", {
        "vehicle": str(vehicle.id),
        "customer_name": "Sita Sharma",
        "date_of_delivery": "2030-03-01T09:00:00Z",
        "return_date": "2030-03-05T09:00:00Z",
        "charges": [{"charge_type": "wash", "amount": "100"}],
        "payments": [{"amount_paid": "2100"}],
    }, format="json")
    sale = Sale.objects.get(pk=response.data["data"]["id"])
    payment = sale.payments.get()
    admin_client.post(f"/api/payments/{sale.id}/{payment.id}/verify", {"status": "Completed"}, format="json")
    sale.refresh_from_db()
    assert sale.payment_status == "paid"
    return sale


def test_revenue_report_month(accountant_client, paid_sale):
    response = accountant_client.get("/api/revenue", {"period": "month", "date": "2030-03"})

    assert response.status_code == 200
    assert response.data["data"] == {
        "period": "month",
        "start_date": "2030-03-01",
        "end_date": "2030-03-31",
        "recognize_at": "prorated",
        "total_revenue": "2100.00",
        "sale_count": 1,
    }


def test_revenue_report_prorates_custom_window(accountant_client, paid_sale):
    response = accountant_client.get("/api/revenue", {
        "period": "custom", "start_date": "2030-03-01", "end_date": "2030-03-02"})
    assert response.data["data"]["total_revenue"] == "840.00"

    response = accountant_client.get("/api/revenue", {
        "period": "custom", "start_date": "2030-03-01", "end_date": "2030-03-02",
        "recognize_at": "end"})
    assert response.data["data"]["total_revenue"] == "0.00"
    assert response.data["data"]["sale_count"] == 0


def test_revenue_excludes_cancelled_sales(admin_client, accountant_client, paid_sale):
    admin_client.post(f"/api/sales/{paid_sale.id}/cancel", {}, format="json")
    response = accountant_client.get("/api/revenue", {"period": "year", "date": "2030"})
    assert response.data["data"]["total_revenue"] == "0.00"


def test_revenue_is_restricted(staff_client, db):
    assert staff_client.get("/api/revenue").status_code == 403


def test_revenue_rejects_bad_method(accountant_client):
    assert accountant_client.get("/api/revenue", {"recognize_at": "sometimes"}).status_code == 400


def test_statements(accountant_client, admin_client, paid_sale, vehicle):
    admin_client.post("/api/sales", {
        "vehicle": str(vehicle.id),
        "customer_name": "Hari Bahadur",
        "date_of_delivery": "2030-04-01T09:00:00Z",
        "return_date": "2030-04-03T09:00:00Z",
    }, format="json")

    response = accountant_client.get("/api/statements")
    assert response.status_code == 200
    rows = {row["customer_name"]: row for row in response.data["data"]["results"]}
    assert Decimal(rows["Sita Sharma"]["amount_paid"]) == Decimal("2100")
    assert Decimal(rows["Sita Sharma"]["balance"]) == Decimal("0")
    assert Decimal(rows["Hari Bahadur"]["balance"]) == Decimal("1000")
    assert rows["Hari Bahadur"]["registration_number"] == vehicle.registration_number

    response = accountant_client.get("/api/statements", {"outstanding_only": "true"})
    names = [row["customer_name"] for row in response.data["data"]["results"]]
    assert names == ["Hari Bahadur"]

    assert accountant_client.get("/api/statements", {"vendor": "x"}).status_code == 400


def test_expenses_crud(accountant_client, staff_client, vehicle, company):
    response = accountant_client.post("/api/expenses", {
        "expense_type": "fuel",
        "amount": "2500.00",
        "description": "Diesel top-up",
        "vehicle": str(vehicle.id),
    }, format="json")
    assert response.status_code == 201
    expense = Expense.objects.get(pk=response.data["data"]["id"])
    assert expense.company == company
    assert expense.recorded_by.username == "accountant"

    accountant_client.post("/api/expenses", {"expense_type": "rent", "amount": "15000"}, format="json")

    # staff may read but not write
    assert staff_client.post("/api/expenses", {"expense_type": "rent", "amount": "1"}, format="json").status_code == 403
    listing = staff_client.get("/api/expenses", {"expense_type": "fuel"})
    assert [row["id"] for row in listing.data["data"]["results"]] == [str(expense.id)]

    response = accountant_client.patch(f"/api/expenses/{expense.id}", {"amount": "2600"}, format="json")
    assert response.status_code == 200
    expense.refresh_from_db()
    assert expense.amount == Decimal("2600.00")

    assert accountant_client.delete(f"/api/expenses/{expense.id}").status_code == 200
    assert not Expense.objects.filter(pk=expense.pk).exists()


def test_expense_validation(accountant_client, other_vehicle):
    assert accountant_client.post(
        "/api/expenses", {"expense_type": "fuel", "amount": "0"}, format="json").status_code == 400
    assert accountant_client.post(
        "/api/expenses", {"expense_type": "fuel", "amount": "10", "vehicle": str(other_vehicle.id)},
        format="json").status_code == 400
