"""
Sale lifecycle: pending -> active -> completed, with cancellation allowed
from pending or active. Each transition runs in a single transaction.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from backend_renting.exceptions import Conflict, InvalidState
from vehicle.models import Vehicle, VehicleUsage
from vehicle.servicing import update_servicing_status
from .availability import overlapping_sales
from .ledger import refresh_payment_status
from .models import Sale, SalesCharge, Payment, SaleMedia, BLOCKING_STATUSES

logger = logging.getLogger(__name__)


def _require_admin(user, action):
    if not getattr(user, 'is_admin', False):
        raise PermissionDenied(f"Only admins can {action}.")


def lock_sale(sale_id, company):
    try:
        return Sale.objects.select_for_update(of=('self',)).get(
            pk=sale_id, vehicle__company=company)
    except Sale.DoesNotExist:
        raise NotFound("Sale not found.")


def _lock_vehicle(vehicle_id):
    return Vehicle.objects.select_for_update().get(pk=vehicle_id)


def upsert_charges(sale, charges, user):
    """One row per charge type: re-adding a type replaces its amount."""
    for item in charges or []:
        SalesCharge.objects.update_or_create(
            sale=sale,
            charge_type=item['charge_type'],
            defaults={
                'amount': item['amount'],
                'remark': item.get('remark') or "",
                'created_by': user,
            },
        )


def record_payments(sale, payments, user, default_type):
    created = []
    for item in payments or []:
        created.append(Payment.objects.create(
            sale=sale,
            amount_paid=item['amount_paid'],
            payment_type=item.get('payment_type') or default_type,
            payment_method=item.get('payment_method') or 'cash',
            remark=item.get('remark'),
            recorded_by=user,
        ))
    return created


def record_usage(sale, usage, user, record_type):
    if not usage:
        return None
    return VehicleUsage.objects.create(
        vehicle_id=sale.vehicle_id,
        sale=sale,
        record_type=record_type,
        km_reading=usage['km_reading'],
        fuel_range=usage.get('fuel_range'),
        recorded_by=user,
    )


def create_sale(user, data):
    """
    Book a vehicle. ``data`` is validated input: the sale fields plus optional
    ``charges``, ``payments``, ``images`` and ``videos`` lists.
    """
    data = dict(data)
    vehicle = data.pop('vehicle')
    charges = data.pop('charges', [])
    payments = data.pop('payments', [])
    media = [('image', url) for url in data.pop('images', [])]
    media += [('video', url) for url in data.pop('videos', [])]

    if vehicle.company_id != user.company_id:
        raise NotFound("Vehicle not found.")

    with transaction.atomic():
        vehicle = _lock_vehicle(vehicle.pk)
        if vehicle.status == 'under_maintenance':
            raise InvalidState("Vehicle is under maintenance and cannot be booked.")

        clash = overlapping_sales(vehicle, data['date_of_delivery'], data['return_date']).first()
        if clash is not None:
            raise Conflict(
                f"Vehicle is already booked from {clash.date_of_delivery:%Y-%m-%d} "
                f"to {clash.return_date:%Y-%m-%d}.")

        if data.get('charge_per_day') is None:
            data['charge_per_day'] = vehicle.charge_per_day

        sale = Sale(vehicle=vehicle, user=user, modified_by=user, **data)
        sale.save()

        upsert_charges(sale, charges, user)
        SaleMedia.objects.bulk_create(
            [SaleMedia(sale=sale, media_type=kind, url=url) for kind, url in media])
        record_payments(sale, payments, user, default_type='booking')

        sale.save()
        refresh_payment_status(sale)

    logger.info(
        f"Sale {sale.id} booked for vehicle {vehicle.registration_number} "
        f"({sale.number_of_days} days, total {sale.total_amount})")
    return sale


def deliver_sale(sale_id, user, usage=None, payments=None):
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status != 'pending':
            raise InvalidState(f"Only pending sales can be delivered; this sale is {sale.status}.")

        vehicle = _lock_vehicle(sale.vehicle_id)
        if vehicle.status == 'under_maintenance':
            raise InvalidState("Vehicle is under maintenance and cannot be delivered.")
        clash = overlapping_sales(
            vehicle, sale.date_of_delivery, sale.return_date,
            exclude_sale_id=sale.pk, statuses=('active',),
        ).exists()
        if clash or vehicle.status == 'rented':
            raise Conflict("Vehicle is currently rented on another sale.")

        record_usage(sale, usage, user, 'delivery')
        record_payments(sale, payments, user, default_type='delivery')

        sale.status = 'active'
        sale.actual_date_of_delivery = timezone.now()
        sale.modified_by = user
        sale.save()
        vehicle.update_status('rented')
        refresh_payment_status(sale)

    logger.info(f"Sale {sale.id} delivered, vehicle {vehicle.registration_number} rented")
    return sale


def process_return(sale_id, user, charges=None, usage=None, payments=None, remark=None):
    """
    Close an active rental: final charges, return odometer reading and any
    payments are written, the sale completes and the vehicle becomes
    available again, all in one transaction.
    """
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status != 'active':
            raise InvalidState(f"Only active sales can be returned; this sale is {sale.status}.")

        upsert_charges(sale, charges, user)
        usage_record = record_usage(sale, usage, user, 'return')
        record_payments(sale, payments, user, default_type='return')

        sale.status = 'completed'
        sale.actual_date_of_return = timezone.now()
        sale.modified_by = user
        if remark is not None:
            sale.remark = remark
        sale.save()

        vehicle = _lock_vehicle(sale.vehicle_id)
        vehicle.update_status('available')
        refresh_payment_status(sale)

        if usage_record is not None:
            update_servicing_status(vehicle, usage_record.km_reading)

    logger.info(
        f"Sale {sale.id} returned, vehicle {vehicle.registration_number} available "
        f"(total {sale.total_amount}, {sale.payment_status})")
    return sale


def cancel_sale(sale_id, user, remark=None):
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status in ('completed', 'cancelled'):
            raise InvalidState(f"Cannot cancel a sale that is already {sale.status}.")

        was_active = sale.status == 'active'
        sale.status = 'cancelled'
        sale.modified_by = user
        if remark is not None:
            sale.remark = remark
        sale.save()

        if was_active:
            _lock_vehicle(sale.vehicle_id).update_status('available')

    logger.info(f"Sale {sale.id} cancelled by {user.username}")
    return sale


def add_charge(sale_id, user, charge_type, amount, remark=""):
    _require_admin(user, "add charges")
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status == 'cancelled':
            raise InvalidState("Cannot add charges to a cancelled sale.")

        upsert_charges(sale, [{'charge_type': charge_type, 'amount': amount, 'remark': remark}], user)
        sale.modified_by = user
        sale.save()
        refresh_payment_status(sale)

    logger.info(f"Charge {charge_type}={amount} set on sale {sale.id}")
    return sale


def remove_charge(sale_id, user, charge_type):
    _require_admin(user, "remove charges")
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        deleted, _ = sale.charges.filter(charge_type=charge_type).delete()
        if not deleted:
            raise NotFound(f"No {charge_type} charge on this sale.")
        sale.modified_by = user
        sale.save()
        refresh_payment_status(sale)
    return sale


def update_sale(sale_id, user, patch):
    """Apply a SalePatch; totals and payment status are re-derived."""
    _require_admin(user, "update sales")
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status == 'cancelled':
            raise InvalidState("Cancelled sales cannot be updated.")

        changed = patch.apply_to(sale)
        if patch.touches_dates and sale.status in BLOCKING_STATUSES:
            _lock_vehicle(sale.vehicle_id)
            if overlapping_sales(
                    sale.vehicle, sale.date_of_delivery, sale.return_date,
                    exclude_sale_id=sale.pk).exists():
                raise Conflict("The new dates overlap another booking of this vehicle.")

        sale.modified_by = user
        sale.save()
        refresh_payment_status(sale)

    logger.info(f"Sale {sale.id} updated by {user.username}: {', '.join(changed) or 'no changes'}")
    return sale


def add_payments(sale_id, user, payments):
    """Record further (pending) payments against a sale."""
    with transaction.atomic():
        sale = lock_sale(sale_id, user.company)
        if sale.status == 'cancelled':
            raise InvalidState("Cannot record payments on a cancelled sale.")
        created = record_payments(sale, payments, user, default_type='booking')
    logger.info(f"{len(created)} payment(s) recorded on sale {sale.id}")
    return sale, created
