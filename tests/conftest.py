from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from account.authentication import issue_tokens
from account.models import Company, User
from sales.models import Sale
from vehicle.models import Vehicle


def aware(*args):
    return timezone.make_aware(datetime(*args), timezone.get_current_timezone())


@pytest.fixture
def company(db):
    return Company.objects.create(name="Himal Rentals", company_code="HIMAL")


@pytest.fixture
def other_company(db):
    return Company.objects.create(name="Valley Cars", company_code="VALLEY")


def make_user(company, username, role, mobile):
    return User.objects.create_user(
        username=username,
        password="Sup3r-Secret-pass",
        company=company,
        role=role,
        mobile_number=mobile,
        first_name=username.title(),
    )


@pytest.fixture
def admin_user(company):
    return make_user(company, "admin", "admin", "9800000001")


@pytest.fixture
def staff_user(company):
    return make_user(company, "staff", "staff", "9800000002")


@pytest.fixture
def accountant_user(company):
    return make_user(company, "accountant", "accountant", "9800000003")


def client_for(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user)['access']}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def staff_client(staff_user):
    return client_for(staff_user)


@pytest.fixture
def accountant_client(accountant_user):
    return client_for(accountant_user)


@pytest.fixture
def vehicle(company, admin_user):
    return Vehicle.objects.create(
        company=company,
        name="Hyundai Creta",
        model="2022",
        registration_number="BA 2 PA 1234",
        vehicle_type="suv",
        charge_per_day=Decimal("500.00"),
        created_by=admin_user,
    )


@pytest.fixture
def other_vehicle(other_company):
    return Vehicle.objects.create(
        company=other_company,
        name="Suzuki Swift",
        model="2020",
        registration_number="BA 9 PA 9999",
        charge_per_day=Decimal("300.00"),
    )


@pytest.fixture
def make_sale(vehicle, admin_user):
    def _make(start=None, days=4, **extra):
        start = start or timezone.now() + timedelta(days=10)
        fields = dict(
            vehicle=vehicle,
            user=admin_user,
            customer_name="Sita Sharma",
            customer_phone="9811111111",
            date_of_delivery=start,
            return_date=start + timedelta(days=days),
            charge_per_day=vehicle.charge_per_day,
        )
        fields.update(extra)
        sale = Sale(**fields)
        sale.save()
        return sale
    return _make
