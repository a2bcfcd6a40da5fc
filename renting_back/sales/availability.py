from django.utils import timezone

from .models import Sale, BLOCKING_STATUSES

DATE_FORMAT = '%Y-%m-%d'


def overlapping_sales(vehicle, start, end, exclude_sale_id=None, statuses=BLOCKING_STATUSES):
    """Sales of ``vehicle`` in ``statuses`` whose range intersects [start, end)."""
    queryset = Sale.objects.filter(
        vehicle=vehicle,
        status__in=statuses,
        date_of_delivery__lt=end,
        return_date__gt=start,
    )
    if exclude_sale_id:
        queryset = queryset.exclude(pk=exclude_sale_id)
    return queryset


def _as_range(sale):
    return {
        "sale_id": str(sale.id),
        "start_date": sale.date_of_delivery.strftime(DATE_FORMAT),
        "end_date": sale.return_date.strftime(DATE_FORMAT),
    }


def disabled_dates(vehicle, exclude_sale_id=None, today=None):
    """
    Date ranges a new booking of ``vehicle`` may not use: rentals in progress
    and pending bookings that have not ended yet.
    """
    today = today or timezone.now().date()
    sales = Sale.objects.filter(vehicle=vehicle).order_by('date_of_delivery')
    if exclude_sale_id:
        sales = sales.exclude(pk=exclude_sale_id)

    active = sales.filter(status='active')
    upcoming = sales.filter(status='pending', return_date__date__gte=today)
    return {
        "active_rentals": [_as_range(sale) for sale in active],
        "future_bookings": [_as_range(sale) for sale in upcoming],
    }
