"""
Revenue recognition.

Once a sale is fully paid its total is recorded against the rental's date
range. Reports then attribute that total to a window in one of three ways:
on the first rental day (``start``), on the last (``end``), or spread evenly
across every rental day (``prorated``).
"""
import calendar
import logging
from datetime import date, datetime
from decimal import Decimal

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from .models import RevenueRecognition

logger = logging.getLogger(__name__)

PERIODS = ('day', 'month', 'year', 'custom')
RECOGNITION_METHODS = ('prorated', 'start', 'end')
CENTS = Decimal('0.01')


def _local_date(value):
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def recognize_sale_revenue(sale):
    """Create or refresh the recognition row of a paid sale."""
    start = _local_date(sale.date_of_delivery)
    end = _local_date(sale.return_date)
    if end < start:
        raise ValidationError({"return_date": "Return date must not be before the date of delivery."})

    entry, created = RevenueRecognition.objects.update_or_create(
        sale=sale,
        defaults={
            'total_amount': sale.total_amount,
            'start_date': start,
            'end_date': end,
        },
    )
    logger.info(
        f"Revenue {'recognized' if created else 'updated'} for sale {sale.id}: "
        f"{entry.total_amount} over {entry.days} day(s)")
    return entry


def withdraw_sale_revenue(sale):
    deleted, _ = RevenueRecognition.objects.filter(sale=sale).delete()
    if deleted:
        logger.info(f"Revenue recognition withdrawn for sale {sale.id}")
    return bool(deleted)


def recognized_amount(entry, window_start, window_end, recognize_at='prorated'):
    """Portion of ``entry.total_amount`` that falls inside the inclusive window."""
    if recognize_at == 'start':
        return entry.total_amount if window_start <= entry.start_date <= window_end else Decimal('0')
    if recognize_at == 'end':
        return entry.total_amount if window_start <= entry.end_date <= window_end else Decimal('0')

    first = max(entry.start_date, window_start)
    last = min(entry.end_date, window_end)
    if last < first:
        return Decimal('0')
    if first == entry.start_date and last == entry.end_date:
        return entry.total_amount
    overlap = (last - first).days + 1
    return (Decimal(entry.daily_amount) * overlap).quantize(CENTS)


def _parse(value, fmt, field):
    try:
        return datetime.strptime(value, fmt).date()
    except (TypeError, ValueError):
        raise ValidationError({field: f"Expected a date in {fmt.replace('%', '')} format."})


def _parse_reference(value, short_fmt, today):
    """A reference date given either in its short form or as YYYY-MM-DD."""
    if not value:
        return today
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, short_fmt).date()
    except ValueError:
        return _parse(value, '%Y-%m-%d', 'date')


def period_window(period='month', ref=None, start_date=None, end_date=None, today=None):
    """Inclusive (start, end) dates for a reporting period."""
    today = today or timezone.localdate()

    if period == 'day':
        day = _parse_reference(ref, '%Y-%m-%d', today)
        return day, day
    if period == 'month':
        day = _parse_reference(ref, '%Y-%m', today)
        last = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last)
    if period == 'year':
        day = _parse_reference(ref, '%Y', today)
        return date(day.year, 1, 1), date(day.year, 12, 31)
    if period == 'custom':
        if not start_date or not end_date:
            raise ValidationError("start_date and end_date are required for a custom period.")
        start = start_date if isinstance(start_date, date) else _parse(start_date, '%Y-%m-%d', 'start_date')
        end = end_date if isinstance(end_date, date) else _parse(end_date, '%Y-%m-%d', 'end_date')
        if end < start:
            raise ValidationError({"end_date": "end_date must not be before start_date."})
        return start, end

    raise ValidationError({"period": f"Period must be one of {', '.join(PERIODS)}."})


def revenue_report(company, period='month', ref=None, start_date=None, end_date=None,
                   recognize_at='prorated', today=None):
    if recognize_at not in RECOGNITION_METHODS:
        raise ValidationError(
            {"recognize_at": f"recognize_at must be one of {', '.join(RECOGNITION_METHODS)}."})
    window_start, window_end = period_window(period, ref, start_date, end_date, today)

    entries = RevenueRecognition.objects.exclude(sale__status='cancelled').filter(
        sale__vehicle__company=company,
        sale__payment_status='paid',
        start_date__lte=window_end,
        end_date__gte=window_start,
    )

    total = Decimal('0')
    sale_count = 0
    for entry in entries:
        amount = recognized_amount(entry, window_start, window_end, recognize_at)
        if amount:
            total += amount
            sale_count += 1

    return {
        "period": period,
        "start_date": window_start.isoformat(),
        "end_date": window_end.isoformat(),
        "recognize_at": recognize_at,
        "total_revenue": str(total.quantize(CENTS)),
        "sale_count": sale_count,
    }
