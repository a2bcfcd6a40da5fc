# finances/serializers.py
from rest_framework import serializers

from vehicle.models import Vehicle
from .models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    vehicle = serializers.PrimaryKeyRelatedField(
        queryset=Vehicle.objects.all(), required=False, allow_null=True)

    class Meta:
        model = Expense
        fields = ('id', 'expense_type', 'amount', 'description', 'expense_date',
                  'vehicle', 'recorded_by', 'created_at', 'updated_at')
        read_only_fields = ('id', 'recorded_by', 'created_at', 'updated_at')

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Expense amount must be greater than zero")
        return value

    def validate_vehicle(self, vehicle):
        request = self.context.get('request')
        if vehicle and request and vehicle.company_id != request.user.company_id:
            raise serializers.ValidationError("Vehicle not found.")
        return vehicle


class StatementSerializer(serializers.Serializer):
    sale_id = serializers.UUIDField(source='id')
    customer_name = serializers.CharField()
    vehicle_id = serializers.UUIDField()
    registration_number = serializers.CharField(source='vehicle.registration_number')
    date_of_delivery = serializers.DateTimeField()
    return_date = serializers.DateTimeField()
    status = serializers.CharField()
    payment_status = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)


class RevenueQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(
        choices=('day', 'month', 'year', 'custom'), default='month')
    date = serializers.CharField(required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    recognize_at = serializers.ChoiceField(
        choices=('prorated', 'start', 'end'), default='prorated')
