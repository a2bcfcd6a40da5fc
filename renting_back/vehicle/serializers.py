# vehicle/serializers.py
from rest_framework import serializers
from django.conf import settings
import logging

from backend_renting.exceptions import Conflict
from .models import (
    Vehicle, VehicleUsage, VehicleServicing, Reminder, ReminderAcknowledgement,
)
from .recurrence import (
    calculate_next_due_date, initial_next_due_date, validate_schedule,
)
from . import recurrence

logger = logging.getLogger(__name__)


class VehicleSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(
        source='get_status_display', read_only=True)
    vehicle_type_display = serializers.CharField(
        source='get_vehicle_type_display', read_only=True)

    class Meta:
        model = Vehicle
        fields = '__all__'
        read_only_fields = ('company', 'status', 'is_available',
                            'created_at', 'updated_at', 'created_by')
        # registration uniqueness is per company, checked below
        validators = []

    def validate_registration_number(self, value):
        request = self.context.get('request')
        if request is None:
            return value
        clash = Vehicle.objects.filter(
            company=request.user.company, registration_number=value)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise Conflict(f"A vehicle with registration number {value} already exists.")
        return value

    def validate_charge_per_day(self, value):
        if value < 0:
            raise serializers.ValidationError("charge_per_day cannot be negative")
        return value


class VehicleSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = ('id', 'name', 'model', 'registration_number', 'vehicle_type',
                  'status', 'image_url')


class VehicleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['available', 'under_maintenance'])


class VehicleUsageSerializer(serializers.ModelSerializer):
    class Meta:
        model = VehicleUsage
        fields = ('id', 'vehicle', 'sale', 'record_type', 'km_reading',
                  'fuel_range', 'recorded_by', 'recorded_at')
        read_only_fields = fields


class UsageInputSerializer(serializers.Serializer):
    km_reading = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    fuel_range = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class VehicleServicingSerializer(serializers.ModelSerializer):
    class Meta:
        model = VehicleServicing
        fields = ('id', 'vehicle', 'last_servicing_km', 'next_servicing_km',
                  'servicing_interval_km', 'is_servicing_due', 'status',
                  'last_serviced_at', 'created_at')
        read_only_fields = fields


class ServicingInitSerializer(serializers.Serializer):
    last_servicing_km = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    servicing_interval_km = serializers.IntegerField(min_value=1, required=False)

    def validate(self, data):
        data.setdefault('servicing_interval_km', settings.SERVICING_DEFAULT_INTERVAL_KM)
        return data


class MarkServicedSerializer(serializers.Serializer):
    km_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False)
    serviced_at = serializers.DateTimeField(required=False)


class ReminderSerializer(serializers.ModelSerializer):
    vehicle_details = VehicleSummarySerializer(source='vehicle', read_only=True)
    is_due = serializers.SerializerMethodField()

    class Meta:
        model = Reminder
        fields = ('id', 'vehicle', 'vehicle_details', 'reminder_type', 'start_date',
                  'next_due_date', 'frequency', 'custom_interval', 'description',
                  'is_due', 'created_by', 'created_at', 'updated_at')
        read_only_fields = ('created_by', 'created_at', 'updated_at')
        extra_kwargs = {'next_due_date': {'required': False}}

    def get_is_due(self, obj):
        today = self.context.get('today')
        if today is None:
            return None
        return recurrence.is_due(obj.next_due_date, today)

    def validate_vehicle(self, vehicle):
        request = self.context.get('request')
        if request and vehicle.company_id != request.user.company_id:
            raise serializers.ValidationError("Vehicle not found.")
        return vehicle

    def validate(self, data):
        frequency = data.get('frequency', getattr(self.instance, 'frequency', None))
        interval = data.get('custom_interval', getattr(self.instance, 'custom_interval', None))
        validate_schedule(frequency, interval)
        if frequency != 'custom':
            data['custom_interval'] = None
        return data

    def create(self, validated_data):
        validated_data['next_due_date'] = initial_next_due_date(
            validated_data['start_date'],
            validated_data['frequency'],
            validated_data.get('custom_interval'),
            supplied=validated_data.get('next_due_date'),
        )
        return super().create(validated_data)

    def update(self, instance, validated_data):
        schedule_changed = any(
            key in validated_data and validated_data[key] != getattr(instance, key)
            for key in ('start_date', 'frequency', 'custom_interval')
        )
        if 'next_due_date' not in validated_data and schedule_changed:
            validated_data['next_due_date'] = calculate_next_due_date(
                validated_data.get('start_date', instance.start_date),
                validated_data.get('frequency', instance.frequency),
                validated_data.get('custom_interval', instance.custom_interval),
            )
        return super().update(instance, validated_data)


class ReminderAcknowledgementSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = ReminderAcknowledgement
        fields = ('id', 'reminder', 'user', 'username', 'acknowledged_at')
        read_only_fields = fields
