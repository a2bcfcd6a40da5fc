import django_filters

from backend_renting.filters import StrictFilterSet
from .models import Sale, SALE_STATUS, SALE_PAYMENT_STATUS

OPEN_STATUS = 'not_completed_or_cancelled'


class SaleFilter(StrictFilterSet):
    """Every query key the sales listing understands, with its lookup."""
    status = django_filters.ChoiceFilter(
        choices=SALE_STATUS + [(OPEN_STATUS, 'Not completed or cancelled')],
        method='filter_status')
    payment_status = django_filters.ChoiceFilter(choices=SALE_PAYMENT_STATUS)
    vehicle_id = django_filters.UUIDFilter(field_name='vehicle_id')
    customer_name = django_filters.CharFilter(lookup_expr='icontains')
    delivery_pending = django_filters.BooleanFilter(
        field_name='actual_date_of_delivery', lookup_expr='isnull')
    date_of_delivery_after = django_filters.DateFilter(
        field_name='date_of_delivery', lookup_expr='date__gte')
    date_of_delivery_before = django_filters.DateFilter(
        field_name='date_of_delivery', lookup_expr='date__lte')
    return_date_after = django_filters.DateFilter(
        field_name='return_date', lookup_expr='date__gte')
    return_date_before = django_filters.DateFilter(
        field_name='return_date', lookup_expr='date__lte')
    is_damaged = django_filters.BooleanFilter()
    is_delayed = django_filters.BooleanFilter()
    sort = django_filters.OrderingFilter(
        fields=('date_of_delivery', 'return_date', 'booking_date', 'created_at',
                'total_amount', 'customer_name'))

    class Meta:
        model = Sale
        fields = []

    def filter_status(self, queryset, name, value):
        if value == OPEN_STATUS:
            return queryset.exclude(status__in=('completed', 'cancelled'))
        return queryset.filter(status=value)
