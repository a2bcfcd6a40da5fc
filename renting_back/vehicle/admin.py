from django.contrib import admin
from .models import (
    Vehicle, VehicleUsage, VehicleServicing, Reminder, ReminderAcknowledgement,
)


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ('name', 'model', 'registration_number', 'company', 'status', 'charge_per_day')
    list_filter = ('status', 'vehicle_type', 'company')
    search_fields = ('name', 'model', 'registration_number')


@admin.register(VehicleUsage)
class VehicleUsageAdmin(admin.ModelAdmin):
    list_display = ('vehicle', 'record_type', 'km_reading', 'fuel_range', 'recorded_at')
    list_filter = ('record_type',)


@admin.register(VehicleServicing)
class VehicleServicingAdmin(admin.ModelAdmin):
    list_display = ('vehicle', 'last_servicing_km', 'next_servicing_km', 'status', 'created_at')
    list_filter = ('status', 'is_servicing_due')


class ReminderAcknowledgementInline(admin.TabularInline):
    model = ReminderAcknowledgement
    extra = 0
    readonly_fields = ('user', 'acknowledged_at')


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ('vehicle', 'reminder_type', 'frequency', 'next_due_date', 'is_deleted')
    list_filter = ('reminder_type', 'frequency', 'is_deleted')
    inlines = [ReminderAcknowledgementInline]
