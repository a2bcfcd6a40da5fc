from datetime import timedelta

import pytest
from django.utils import timezone

from conftest import aware
from vehicle.models import Reminder, ReminderAcknowledgement
from vehicle.reminders import acknowledge_reminder, due_reminders


def make_reminder(vehicle, start, frequency="monthly", custom_interval=None, next_due=None, **extra):
    return Reminder.objects.create(
        vehicle=vehicle,
        reminder_type=extra.pop("reminder_type", "insurance"),
        start_date=start,
        next_due_date=next_due or start,
        frequency=frequency,
        custom_interval=custom_interval,
        **extra,
    )


def test_create_custom_reminder_computes_due_date(staff_client, vehicle):
    response = staff_client.post("/api/reminders", {
        "vehicle": str(vehicle.id),
        "reminder_type": "emi",
        "start_date": "2024-01-15T00:00:00Z",
        "frequency": "custom",
        "custom_interval": 90,
    }, format="json")

    assert response.status_code == 201
    reminder = Reminder.objects.get(pk=response.data["data"]["id"])
    assert reminder.next_due_date.date().isoformat() == "2024-04-14"


def test_create_monthly_reminder_from_month_end(staff_client, vehicle):
    response = staff_client.post("/api/reminders", {
        "vehicle": str(vehicle.id),
        "reminder_type": "insurance",
        "start_date": "2024-01-31T00:00:00Z",
        "frequency": "monthly",
        "custom_interval": 10,
    }, format="json")

    assert response.status_code == 201
    reminder = Reminder.objects.get(pk=response.data["data"]["id"])
    assert reminder.next_due_date.date().isoformat() == "2024-02-29"
    assert reminder.custom_interval is None


def test_custom_reminder_without_interval_is_rejected(staff_client, vehicle):
    response = staff_client.post("/api/reminders", {
        "vehicle": str(vehicle.id),
        "reminder_type": "emi",
        "start_date": "2024-01-15T00:00:00Z",
        "frequency": "custom",
    }, format="json")
    assert response.status_code == 400


def test_reminder_for_foreign_vehicle_is_rejected(staff_client, other_vehicle):
    response = staff_client.post("/api/reminders", {
        "vehicle": str(other_vehicle.id),
        "reminder_type": "emi",
        "start_date": "2024-01-15T00:00:00Z",
        "frequency": "monthly",
    }, format="json")
    assert response.status_code == 400


def test_acknowledge_rebases_schedule(vehicle, staff_user):
    reminder = make_reminder(vehicle, aware(2024, 1, 1), next_due=aware(2024, 2, 1))
    acknowledged_at = aware(2024, 2, 3, 10)

    reminder, ack = acknowledge_reminder(
        reminder.id, staff_user, vehicle.company, acknowledged_at=acknowledged_at)

    assert ack.acknowledged_at == acknowledged_at
    assert reminder.start_date == acknowledged_at
    assert reminder.next_due_date == aware(2024, 3, 3, 10)
    reminder.refresh_from_db()
    assert reminder.next_due_date == aware(2024, 3, 3, 10)


def test_acknowledge_endpoint_moves_due_date_past_today(staff_client, vehicle):
    past = timezone.now() - timedelta(days=40)
    reminder = make_reminder(vehicle, past, frequency="custom", custom_interval=30,
                             next_due=past + timedelta(days=30))

    response = staff_client.post(f"/api/reminders/{reminder.id}/acknowledge")

    assert response.status_code == 200
    reminder.refresh_from_db()
    assert reminder.next_due_date.date() > timezone.now().date()
    assert ReminderAcknowledgement.objects.filter(reminder=reminder).count() == 1

    history = staff_client.get(f"/api/reminders/{reminder.id}/history").data["data"]
    assert len(history) == 1
    assert history[0]["username"] == "staff"


def test_due_lists_only_due_reminders(staff_client, vehicle):
    now = timezone.now()
    overdue = make_reminder(vehicle, now - timedelta(days=35), next_due=now - timedelta(days=5))
    make_reminder(vehicle, now, next_due=now + timedelta(days=20), reminder_type="emi")

    assert list(due_reminders(vehicle.company)) == [overdue]

    response = staff_client.get("/api/reminders/due")
    results = response.data["data"]["results"]
    assert [item["id"] for item in results] == [str(overdue.id)]
    assert results[0]["is_due"] is True

    response = staff_client.get("/api/reminders/due", {"reminder_type": "emi"})
    assert response.data["data"]["results"] == []


def test_staff_cannot_delete_reminders(staff_client, vehicle):
    reminder = make_reminder(vehicle, timezone.now())
    assert staff_client.delete(f"/api/reminders/{reminder.id}").status_code == 403


def test_delete_is_soft_unless_hard(admin_client, vehicle):
    soft = make_reminder(vehicle, timezone.now())
    hard = make_reminder(vehicle, timezone.now(), reminder_type="emi")

    assert admin_client.delete(f"/api/reminders/{soft.id}").status_code == 200
    assert not Reminder.objects.filter(pk=soft.pk).exists()
    assert Reminder.all_objects.get(pk=soft.pk).is_deleted

    assert admin_client.delete(f"/api/reminders/{hard.id}?hard=true").status_code == 200
    assert not Reminder.all_objects.filter(pk=hard.pk).exists()


def test_admin_update_recomputes_due_date(admin_client, vehicle):
    reminder = make_reminder(vehicle, aware(2024, 1, 10), next_due=aware(2024, 2, 10))

    response = admin_client.patch(
        f"/api/reminders/{reminder.id}", {"frequency": "yearly"}, format="json")

    assert response.status_code == 200
    reminder.refresh_from_db()
    assert reminder.next_due_date == aware(2025, 1, 10)


def test_failed_rebase_discards_acknowledgement(vehicle, staff_user, monkeypatch):
    from vehicle import reminders

    reminder = make_reminder(vehicle, aware(2024, 1, 1), next_due=aware(2024, 2, 1))

    def broken_schedule(*args, **kwargs):
        raise RuntimeError("schedule unavailable")

    monkeypatch.setattr(reminders, "calculate_next_due_date", broken_schedule)

    with pytest.raises(RuntimeError):
        acknowledge_reminder(reminder.id, staff_user, vehicle.company)

    reminder.refresh_from_db()
    assert reminder.start_date == aware(2024, 1, 1)
    assert reminder.next_due_date == aware(2024, 2, 1)
    assert not ReminderAcknowledgement.objects.filter(reminder=reminder).exists()
