# vehicle/models.py
from django.db import models
import uuid
from django.conf import settings
from django.utils import timezone

# Constants
VEHICLE_STATUS_CHOICES = [
    ('available', 'Available'),
    ('rented', 'Rented'),
    ('under_maintenance', 'Under Maintenance'),
]

VEHICLE_TYPES = [
    ('sedan', 'Sedan'),
    ('suv', 'SUV'),
    ('hatchback', 'Hatchback'),
    ('van', 'Van'),
    ('truck', 'Truck'),
    ('bus', 'Bus'),
    ('motorbike', 'Motorbike'),
    ('other', 'Other'),
]

VEHICLE_FUEL_TYPES = [
    ('petrol', 'Petrol'),
    ('diesel', 'Diesel'),
    ('electric', 'Electric'),
    ('hybrid', 'Hybrid'),
]

USAGE_RECORD_TYPES = [
    ('delivery', 'Delivery'),
    ('return', 'Return'),
]

SERVICING_STATUS = [
    ('pending', 'Pending'),
    ('in_progress', 'In Progress'),
    ('completed', 'Completed'),
]

REMINDER_TYPES = [
    ('emi', 'EMI'),
    ('insurance', 'Insurance'),
    ('billbook', 'Billbook'),
    ('servicing', 'Servicing'),
]

REMINDER_FREQUENCIES = [
    ('monthly', 'Monthly'),
    ('yearly', 'Yearly'),
    ('custom', 'Custom'),
]


class Vehicle(models.Model):
    """Main vehicle information model"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        'account.Company', on_delete=models.CASCADE, related_name='vehicles')
    name = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    registration_number = models.CharField(max_length=32)
    vehicle_type = models.CharField(max_length=32, choices=VEHICLE_TYPES, default='sedan')
    fuel_type = models.CharField(
        max_length=20, choices=VEHICLE_FUEL_TYPES, default='petrol')
    charge_per_day = models.DecimalField(
        max_digits=12, decimal_places=2, default=0)
    status = models.CharField(
        max_length=20, choices=VEHICLE_STATUS_CHOICES, default='available')
    is_available = models.BooleanField(default=True)
    image_url = models.URLField(blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='vehicles_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'status']),
            models.Index(fields=['name', 'model']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['company', 'registration_number'],
                name='unique_registration_per_company'),
        ]

    def __str__(self):
        return f"{self.name} {self.model} ({self.registration_number})"

    def save(self, *args, **kwargs):
        self.is_available = self.status == 'available'
        super().save(*args, **kwargs)

    def update_status(self, new_status):
        """Helper method to update vehicle status"""
        self.status = new_status
        self.is_available = new_status == 'available'
        self.save(update_fields=['status', 'is_available', 'updated_at'])
        return self

    def latest_km_reading(self):
        usage = self.usage_records.order_by('-recorded_at').first()
        return usage.km_reading if usage else None


class VehicleUsage(models.Model):
    """Odometer and fuel snapshot taken at delivery or return of a sale"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        Vehicle, on_delete=models.CASCADE, related_name='usage_records')
    sale = models.ForeignKey(
        'sales.Sale', on_delete=models.CASCADE, related_name='usage_records',
        null=True, blank=True)
    record_type = models.CharField(max_length=20, choices=USAGE_RECORD_TYPES)
    km_reading = models.DecimalField(max_digits=12, decimal_places=2)
    fuel_range = models.PositiveIntegerField(
        null=True, blank=True, help_text="Remaining range or fuel level reported by staff")
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-recorded_at']
        indexes = [
            models.Index(fields=['vehicle', 'recorded_at']),
        ]

    def __str__(self):
        return f"{self.record_type} {self.km_reading}km - {self.vehicle.registration_number}"


class VehicleServicing(models.Model):
    """
    Servicing thresholds for a vehicle. Rows are append-only: every change of
    status inserts a new row, the newest row is the current state.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        Vehicle, on_delete=models.CASCADE, related_name='servicing_records')
    last_servicing_km = models.DecimalField(max_digits=12, decimal_places=2)
    next_servicing_km = models.DecimalField(max_digits=12, decimal_places=2)
    servicing_interval_km = models.PositiveIntegerField()
    is_servicing_due = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20, choices=SERVICING_STATUS, default='pending')
    last_serviced_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        get_latest_by = 'created_at'

    def __str__(self):
        return f"{self.vehicle.registration_number} next service at {self.next_servicing_km}km ({self.status})"


class ActiveReminderManager(models.Manager):
    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class Reminder(models.Model):
    """Recurring obligation on a vehicle (EMI, insurance, billbook, servicing)"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        Vehicle, on_delete=models.CASCADE, related_name='reminders')
    reminder_type = models.CharField(max_length=20, choices=REMINDER_TYPES)
    start_date = models.DateTimeField()
    next_due_date = models.DateTimeField()
    frequency = models.CharField(max_length=20, choices=REMINDER_FREQUENCIES)
    custom_interval = models.PositiveIntegerField(
        null=True, blank=True, help_text="Interval in days for custom frequency")
    description = models.TextField(blank=True, null=True)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='reminders_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveReminderManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['next_due_date']
        base_manager_name = 'all_objects'
        indexes = [
            models.Index(fields=['next_due_date', 'reminder_type']),
        ]

    def __str__(self):
        return f"{self.get_reminder_type_display()} - {self.vehicle.registration_number} due {self.next_due_date:%Y-%m-%d}"

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])


class ReminderAcknowledgement(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reminder = models.ForeignKey(
        Reminder, on_delete=models.CASCADE, related_name='acknowledgements')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
        related_name='reminder_acknowledgements')
    acknowledged_at = models.DateTimeField()

    class Meta:
        ordering = ['-acknowledged_at']

    def __str__(self):
        return f"Acknowledged {self.reminder_id} at {self.acknowledged_at}"
