from decimal import Decimal

import pytest

from vehicle.models import Vehicle, VehicleServicing, VehicleUsage
from vehicle.servicing import (
    initialize_servicing, mark_as_serviced, update_servicing_status,
    vehicles_due_for_servicing,
)

VEHICLE = {
    "name": "Toyota Hiace",
    "model": "2019",
    "registration_number": "BA 1 KHA 4321",
    "vehicle_type": "van",
    "fuel_type": "diesel",
    "charge_per_day": "3500.00",
}


def test_create_vehicle_is_scoped_to_company(staff_client, company):
    response = staff_client.post("/api/vehicles", VEHICLE, format="json")

    assert response.status_code == 201
    vehicle = Vehicle.objects.get(pk=response.data["data"]["id"])
    assert vehicle.company == company
    assert vehicle.status == "available"
    assert vehicle.is_available


def test_accountant_cannot_create_vehicle(accountant_client):
    response = accountant_client.post("/api/vehicles", VEHICLE, format="json")
    assert response.status_code == 403


def test_duplicate_registration_is_conflict(staff_client, vehicle):
    payload = dict(VEHICLE, registration_number=vehicle.registration_number)
    response = staff_client.post("/api/vehicles", payload, format="json")
    assert response.status_code == 409


def test_list_only_shows_own_company(staff_client, vehicle, other_vehicle):
    response = staff_client.get("/api/vehicles")

    assert response.status_code == 200
    results = response.data["data"]["results"]
    assert [item["id"] for item in results] == [str(vehicle.id)]
    assert response.data["data"]["pagination"]["count"] == 1


def test_legacy_route_still_served(staff_client, vehicle):
    assert staff_client.get(f"/api/vehical/{vehicle.id}").status_code == 200


def test_filters_by_status(staff_client, vehicle):
    response = staff_client.get("/api/vehicles", {"status": "under_maintenance"})
    assert response.data["data"]["results"] == []


def test_unknown_filter_key_is_rejected(staff_client, vehicle):
    response = staff_client.get("/api/vehicles", {"colour": "red"})
    assert response.status_code == 400
    assert "colour" in response.data["message"]


def test_other_company_vehicle_is_not_found(staff_client, other_vehicle):
    assert staff_client.get(f"/api/vehicles/{other_vehicle.id}").status_code == 404


def test_update_status(staff_client, vehicle):
    response = staff_client.post(
        f"/api/vehicles/{vehicle.id}/update_status", {"status": "under_maintenance"}, format="json")

    assert response.status_code == 200
    vehicle.refresh_from_db()
    assert vehicle.status == "under_maintenance"
    assert not vehicle.is_available


def test_vehicles_cannot_be_deleted(staff_client, vehicle):
    assert staff_client.delete(f"/api/vehicles/{vehicle.id}").status_code == 405


def test_servicing_appends_only_on_status_change(vehicle):
    initialize_servicing(vehicle, 10000, 5000)

    assert update_servicing_status(vehicle, 12000) is None
    due = update_servicing_status(vehicle, 15000)
    assert due.status == "in_progress"
    assert due.is_servicing_due
    assert update_servicing_status(vehicle, 15500) is None
    assert VehicleServicing.objects.filter(vehicle=vehicle).count() == 2

    assert list(vehicles_due_for_servicing(vehicle.company)) == [vehicle]


def test_mark_as_serviced_uses_latest_reading(vehicle, admin_user):
    initialize_servicing(vehicle, 0, 5000)
    VehicleUsage.objects.create(
        vehicle=vehicle, record_type="return", km_reading=Decimal("5200"), recorded_by=admin_user)

    record = mark_as_serviced(vehicle)

    assert record.status == "completed"
    assert record.next_servicing_km == Decimal("10200")
    assert record.last_serviced_at is not None


def test_mark_as_serviced_without_reading_fails(vehicle):
    from rest_framework.exceptions import ValidationError

    with pytest.raises(ValidationError):
        mark_as_serviced(vehicle)


def test_servicing_endpoints(staff_client, vehicle):
    url = f"/api/vehicles/{vehicle.id}/servicing"
    assert staff_client.get(url).data["data"] == {}

    response = staff_client.post(url, {"last_servicing_km": "1000"}, format="json")
    assert response.status_code == 201
    assert Decimal(response.data["data"]["next_servicing_km"]) == Decimal("6000")

    response = staff_client.post(f"{url}/complete", {"km_reading": "5800"}, format="json")
    assert response.status_code == 200
    assert response.data["data"]["status"] == "completed"

    history = staff_client.get(f"{url}/history").data["data"]
    assert [row["status"] for row in history] == ["completed", "pending"]
