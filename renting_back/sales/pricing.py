"""
Rental day counting and sale total calculation.

Timestamps are compared in whatever zone they carry; nothing is converted.
"""
from collections import namedtuple
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from rest_framework.exceptions import ValidationError

HALF_DAY_MULTIPLIER = Decimal('0.5')
CENTS = Decimal('0.01')

TIME_OF_DAY = {
    'morning': time(9, 0),
    'evening': time(18, 0),
}

EXTRA_CHARGE_TYPES = ('wash', 'damage', 'delay')

RentalDays = namedtuple('RentalDays', ['full_days', 'half_days', 'number_of_days'])


def to_money(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_cutoff(value):
    if isinstance(value, time):
        return value
    hours, _, minutes = str(value).partition(':')
    return time(int(hours), int(minutes or 0))


def half_day_cutoff():
    return parse_cutoff(getattr(settings, 'RENTAL_HALF_DAY_CUTOFF', '12:00'))


def _resolve(value, marker, tzinfo):
    marker = marker or None
    if marker is not None and marker not in TIME_OF_DAY:
        raise ValidationError(
            {"time_of_day": f"Invalid time of day '{marker}'. Use 'morning' or 'evening'."})

    if isinstance(value, datetime):
        day, clock, tzinfo = value.date(), value.time(), value.tzinfo or tzinfo
    elif isinstance(value, date):
        day, clock = value, time.min
    else:
        raise ValidationError({"date": f"Expected a date or datetime, got {value!r}."})

    if marker is not None:
        clock = TIME_OF_DAY[marker]
    return datetime.combine(day, clock, tzinfo=tzinfo)


def calculate_rental_days(date_of_delivery, return_date, delivery_time_of_day=None,
                          return_time_of_day=None, cutoff=None):
    """
    Count billable days between delivery and return.

    Whole 24 hour periods are full days. A trailing partial day is a half day
    when the vehicle comes back at or before the cutoff time of day, and a
    full day otherwise. Nothing bills less than one full day.
    """
    cutoff = parse_cutoff(cutoff) if cutoff is not None else half_day_cutoff()
    tzinfo = next(
        (v.tzinfo for v in (date_of_delivery, return_date)
         if isinstance(v, datetime) and v.tzinfo is not None),
        None,
    )
    start = _resolve(date_of_delivery, delivery_time_of_day, tzinfo)
    end = _resolve(return_date, return_time_of_day, tzinfo)

    if end < start:
        raise ValidationError(
            {"return_date": "Return date must not be before the date of delivery."})

    if start.date() == end.date():
        return RentalDays(1, 0, Decimal(1))

    elapsed = end - start
    full_days = elapsed.days
    half_days = 0
    if elapsed - timedelta(days=full_days):
        if end.time() <= cutoff:
            half_days = 1
        else:
            full_days += 1

    if full_days == 0:
        full_days, half_days = 1, 0

    return RentalDays(full_days, half_days, full_days + HALF_DAY_MULTIPLIER * half_days)


def half_day_rate(charge_per_day):
    return to_money(Decimal(charge_per_day) * HALF_DAY_MULTIPLIER)


def calculate_total_amount(rental_days, charge_per_day, charges=None, other_charges=0):
    """
    base days + half days at half rate + wash/damage/delay - discount - credit.

    ``charges`` maps charge type to amount; unknown types are ignored.
    """
    charges = charges or {}
    rate = Decimal(charge_per_day)
    base = rate * rental_days.full_days + rate * HALF_DAY_MULTIPLIER * rental_days.half_days
    extras = sum((Decimal(charges.get(kind, 0)) for kind in EXTRA_CHARGE_TYPES), Decimal(0))
    discount = Decimal(charges.get('discount', 0))
    return to_money(base + extras - discount - Decimal(other_charges or 0))
