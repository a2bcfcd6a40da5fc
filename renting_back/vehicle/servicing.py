import logging
from decimal import Decimal

from django.conf import settings
from django.db.models import OuterRef, Subquery
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from .models import Vehicle, VehicleServicing

logger = logging.getLogger(__name__)


def default_interval():
    return getattr(settings, "SERVICING_DEFAULT_INTERVAL_KM", 5000)


def current_servicing(vehicle):
    return vehicle.servicing_records.order_by('-created_at').first()


def initialize_servicing(vehicle, last_km, interval=None):
    interval = interval or default_interval()
    last_km = Decimal(last_km)
    record = VehicleServicing.objects.create(
        vehicle=vehicle,
        last_servicing_km=last_km,
        next_servicing_km=last_km + interval,
        servicing_interval_km=interval,
        is_servicing_due=False,
        status='pending',
    )
    logger.info(
        f"Servicing initialized for {vehicle.registration_number}: next at {record.next_servicing_km}km")
    return record


def update_servicing_status(vehicle, current_km):
    """
    Compare an odometer reading with the current threshold. A new row is
    appended only when the status changes; returns it, or None.
    """
    current = current_servicing(vehicle)
    if current is None:
        return None

    current_km = Decimal(current_km)
    is_due = current_km >= current.next_servicing_km
    status = 'in_progress' if is_due else 'pending'
    if status == current.status:
        return None

    record = VehicleServicing.objects.create(
        vehicle=vehicle,
        last_servicing_km=current_km,
        next_servicing_km=current.next_servicing_km,
        servicing_interval_km=current.servicing_interval_km,
        is_servicing_due=is_due,
        status=status,
    )
    if is_due:
        logger.warning(
            f"Vehicle {vehicle.registration_number} is due for servicing ({current_km}km)")
    return record


def mark_as_serviced(vehicle, km_reading=None, serviced_at=None):
    current = current_servicing(vehicle)
    interval = current.servicing_interval_km if current else default_interval()

    if km_reading is None:
        km_reading = vehicle.latest_km_reading()
    if km_reading is None:
        raise ValidationError(
            {"km_reading": "No odometer reading recorded for this vehicle; provide km_reading."})

    km_reading = Decimal(km_reading)
    record = VehicleServicing.objects.create(
        vehicle=vehicle,
        last_servicing_km=km_reading,
        next_servicing_km=km_reading + interval,
        servicing_interval_km=interval,
        is_servicing_due=False,
        status='completed',
        last_serviced_at=serviced_at or timezone.now(),
    )
    logger.info(f"Vehicle {vehicle.registration_number} serviced at {km_reading}km")
    return record


def vehicles_due_for_servicing(company):
    latest = VehicleServicing.objects.filter(
        vehicle=OuterRef('pk')).order_by('-created_at')
    return Vehicle.objects.filter(company=company).annotate(
        servicing_due=Subquery(latest.values('is_servicing_due')[:1]),
        next_servicing_km=Subquery(latest.values('next_servicing_km')[:1]),
    ).filter(servicing_due=True)
