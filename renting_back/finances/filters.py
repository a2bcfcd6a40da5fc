import django_filters

from backend_renting.filters import StrictFilterSet
from sales.models import Sale, SALE_STATUS, SALE_PAYMENT_STATUS
from sales.ledger import payment_epsilon
from .models import Expense, EXPENSE_TYPES


class ExpenseFilter(StrictFilterSet):
    expense_type = django_filters.ChoiceFilter(choices=EXPENSE_TYPES)
    vehicle_id = django_filters.UUIDFilter(field_name='vehicle_id')
    start_date = django_filters.DateFilter(field_name='expense_date', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='expense_date', lookup_expr='date__lte')
    sort = django_filters.OrderingFilter(fields=('expense_date', 'amount', 'created_at'))

    class Meta:
        model = Expense
        fields = []


class StatementFilter(StrictFilterSet):
    """Expects a queryset annotated with ``amount_paid`` and ``balance``."""
    date_from = django_filters.DateFilter(field_name='date_of_delivery', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='date_of_delivery', lookup_expr='date__lte')
    customer_name = django_filters.CharFilter(lookup_expr='icontains')
    status = django_filters.ChoiceFilter(choices=SALE_STATUS)
    payment_status = django_filters.ChoiceFilter(choices=SALE_PAYMENT_STATUS)
    vehicle_id = django_filters.UUIDFilter(field_name='vehicle_id')
    outstanding_only = django_filters.BooleanFilter(method='filter_outstanding')

    class Meta:
        model = Sale
        fields = []

    def filter_outstanding(self, queryset, name, value):
        if value:
            return queryset.filter(balance__gt=payment_epsilon())
        return queryset
