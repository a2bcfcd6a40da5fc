"""Sparse updates to a sale: only the supplied fields change."""
from rest_framework import serializers
from rest_framework.exceptions import ValidationError

from .models import TIME_OF_DAY_CHOICES

# Derived or lifecycle-managed; they change through their own operations.
PROTECTED_FIELDS = frozenset({
    'id', 'vehicle', 'user', 'status', 'payment_status', 'total_amount',
    'full_days', 'half_days', 'number_of_days', 'charge_half_day', 'discount',
    'is_damaged', 'is_washed', 'is_delayed', 'actual_date_of_delivery',
    'actual_date_of_return', 'booking_date', 'modified_by', 'created_at', 'updated_at',
})


class SalePatchSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200)
    customer_phone = serializers.CharField(max_length=50, allow_blank=True)
    customer_destination = serializers.CharField(max_length=255, allow_blank=True)
    date_of_delivery = serializers.DateTimeField()
    return_date = serializers.DateTimeField()
    delivery_time_of_day = serializers.ChoiceField(choices=TIME_OF_DAY_CHOICES, allow_null=True)
    return_time_of_day = serializers.ChoiceField(choices=TIME_OF_DAY_CHOICES, allow_null=True)
    charge_per_day = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    other_charges = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    remark = serializers.CharField(allow_blank=True, allow_null=True)


PATCHABLE_FIELDS = frozenset(SalePatchSerializer().fields)
DATE_FIELDS = frozenset({
    'date_of_delivery', 'return_date', 'delivery_time_of_day', 'return_time_of_day',
})


class SalePatch:
    """
    Mapping of field name to new value. A key that is absent means "leave
    unchanged"; a key present with None clears a nullable field.
    """

    def __init__(self, changes=None):
        self.changes = dict(changes or {})

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Expected an object of fields to update.")

        errors = {}
        for key in payload:
            if key in PROTECTED_FIELDS:
                errors[key] = "This field cannot be set directly."
            elif key not in PATCHABLE_FIELDS:
                errors[key] = "Unknown field."
        if errors:
            raise ValidationError(errors)

        serializer = SalePatchSerializer(data=payload, partial=True)
        serializer.is_valid(raise_exception=True)
        return cls(serializer.validated_data)

    def __bool__(self):
        return bool(self.changes)

    def __contains__(self, field):
        return field in self.changes

    @property
    def touches_dates(self):
        return bool(DATE_FIELDS & set(self.changes))

    def apply_to(self, sale):
        """Merge onto ``sale`` in place; returns the names of changed fields."""
        changed = []
        for field, value in self.changes.items():
            if getattr(sale, field) != value:
                setattr(sale, field, value)
                changed.append(field)
        return changed
