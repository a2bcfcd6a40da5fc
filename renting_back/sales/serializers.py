# sales/serializers.py
from rest_framework import serializers
import logging

from vehicle.models import Vehicle
from vehicle.serializers import (
    UsageInputSerializer, VehicleSummarySerializer, VehicleUsageSerializer,
)
from .models import (
    Sale, SalesCharge, Payment, SaleMedia,
    CHARGE_TYPES, PAYMENT_TYPES, PAYMENT_METHODS, TIME_OF_DAY_CHOICES,
)

logger = logging.getLogger(__name__)


class SalesChargeSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesCharge
        fields = ('id', 'charge_type', 'amount', 'remark', 'created_by', 'created_at', 'updated_at')
        read_only_fields = fields


class ChargeInputSerializer(serializers.Serializer):
    charge_type = serializers.ChoiceField(choices=CHARGE_TYPES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    remark = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Charge amount must be greater than zero")
        return value


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ('id', 'sale', 'amount_paid', 'payment_type', 'payment_method',
                  'payment_status', 'payment_date', 'verified_by_admin', 'verified_by',
                  'verified_at', 'remark', 'recorded_by', 'created_at')
        read_only_fields = fields


class PaymentInputSerializer(serializers.Serializer):
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_type = serializers.ChoiceField(choices=PAYMENT_TYPES, required=False)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False)
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_amount_paid(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero")
        return value


class PaymentVerificationSerializer(serializers.Serializer):
    status = serializers.CharField()
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PaymentCancelSerializer(serializers.Serializer):
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SaleMediaSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleMedia
        fields = ('id', 'media_type', 'url', 'created_at')


class SaleSerializer(serializers.ModelSerializer):
    """
    Sale representation. Related collections are only rendered when named in
    the ``include`` context entry (payments, charges, vehicle, media, usage).
    """
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_status_display = serializers.CharField(
        source='get_payment_status_display', read_only=True)

    class Meta:
        model = Sale
        fields = '__all__'

    def to_representation(self, instance):
        data = super().to_representation(instance)
        include = self.context.get('include', ())
        if 'vehicle' in include:
            data['vehicle_details'] = VehicleSummarySerializer(instance.vehicle).data
        if 'payments' in include:
            data['payments'] = PaymentSerializer(instance.payments.all(), many=True).data
        if 'charges' in include:
            data['charges'] = SalesChargeSerializer(instance.charges.all(), many=True).data
        if 'media' in include:
            data['media'] = SaleMediaSerializer(instance.media.all(), many=True).data
        if 'usage' in include:
            data['usage_records'] = VehicleUsageSerializer(instance.usage_records.all(), many=True).data
        return data


class SaleCreateSerializer(serializers.Serializer):
    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    customer_name = serializers.CharField(max_length=200)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_destination = serializers.CharField(max_length=255, required=False, allow_blank=True)
    booking_date = serializers.DateTimeField(required=False)
    date_of_delivery = serializers.DateTimeField()
    return_date = serializers.DateTimeField()
    delivery_time_of_day = serializers.ChoiceField(
        choices=TIME_OF_DAY_CHOICES, required=False, allow_null=True)
    return_time_of_day = serializers.ChoiceField(
        choices=TIME_OF_DAY_CHOICES, required=False, allow_null=True)
    charge_per_day = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False)
    other_charges = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False)
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    charges = ChargeInputSerializer(many=True, required=False)
    payments = PaymentInputSerializer(many=True, required=False)
    images = serializers.ListField(child=serializers.URLField(max_length=500), required=False)
    videos = serializers.ListField(child=serializers.URLField(max_length=500), required=False)

    def validate_vehicle(self, vehicle):
        request = self.context.get('request')
        if request and vehicle.company_id != request.user.company_id:
            raise serializers.ValidationError("Vehicle not found.")
        return vehicle

    def validate(self, data):
        if data['return_date'] < data['date_of_delivery']:
            raise serializers.ValidationError(
                {"return_date": "Return date must not be before the date of delivery."})
        return data


class DeliverySerializer(serializers.Serializer):
    usage = UsageInputSerializer(required=False)
    payments = PaymentInputSerializer(many=True, required=False)


class ReturnSerializer(serializers.Serializer):
    charges = ChargeInputSerializer(many=True, required=False)
    usage = UsageInputSerializer(required=False)
    payments = PaymentInputSerializer(many=True, required=False)
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CancelSerializer(serializers.Serializer):
    remark = serializers.CharField(required=False, allow_blank=True, allow_null=True)
