import django_filters

from backend_renting.filters import PASSTHROUGH_PARAMS, StrictFilterSet
from .models import (
    Vehicle, Reminder, VEHICLE_STATUS_CHOICES, VEHICLE_TYPES, REMINDER_TYPES,
)


class VehicleFilter(StrictFilterSet):
    name = django_filters.CharFilter(lookup_expr='icontains')
    model = django_filters.CharFilter(lookup_expr='icontains')
    registration_number = django_filters.CharFilter(lookup_expr='icontains')
    vehicle_type = django_filters.ChoiceFilter(choices=VEHICLE_TYPES)
    status = django_filters.ChoiceFilter(choices=VEHICLE_STATUS_CHOICES)
    is_available = django_filters.BooleanFilter()
    sort = django_filters.OrderingFilter(
        fields=('name', 'created_at', 'charge_per_day', 'registration_number'))

    class Meta:
        model = Vehicle
        fields = []


class ReminderFilter(StrictFilterSet):
    vehicle_id = django_filters.UUIDFilter(field_name='vehicle_id')
    reminder_type = django_filters.ChoiceFilter(choices=REMINDER_TYPES)
    due_before = django_filters.DateFilter(field_name='next_due_date', lookup_expr='date__lte')

    # DELETE ?hard=true selects permanent removal
    passthrough_params = PASSTHROUGH_PARAMS | {'hard'}

    class Meta:
        model = Reminder
        fields = []
