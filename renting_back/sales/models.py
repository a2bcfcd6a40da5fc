# sales/models.py
from django.db import models
from django.conf import settings
from django.utils import timezone
from encrypted_fields.fields import EncryptedCharField
from rest_framework.exceptions import ValidationError
import uuid

from vehicle.models import Vehicle
from .pricing import calculate_rental_days, calculate_total_amount, half_day_rate

# Constants
SALE_STATUS = [
    ('pending', 'Pending'),
    ('active', 'Active'),
    ('completed', 'Completed'),
    ('cancelled', 'Cancelled'),
]

SALE_PAYMENT_STATUS = [
    ('unpaid', 'Unpaid'),
    ('partial', 'Partially Paid'),
    ('paid', 'Paid'),
]

TIME_OF_DAY_CHOICES = [
    ('morning', 'Morning'),
    ('evening', 'Evening'),
]

CHARGE_TYPES = [
    ('discount', 'Discount'),
    ('wash', 'Wash'),
    ('damage', 'Damage'),
    ('delay', 'Delay'),
]

PAYMENT_TYPES = [
    ('booking', 'Booking'),
    ('delivery', 'Delivery'),
    ('return', 'Return'),
]

PAYMENT_STATUS = [
    ('Pending', 'Pending'),
    ('Completed', 'Completed'),
    ('Failed', 'Failed'),
    ('Cancelled', 'Cancelled'),
]

PAYMENT_METHODS = [
    ('cash', 'Cash'),
    ('card', 'Credit/Debit Card'),
    ('mobile_money', 'Mobile Money'),
    ('bank_transfer', 'Bank Transfer'),
]

MEDIA_TYPES = [
    ('image', 'Image'),
    ('video', 'Video'),
]

# Sales that hold the vehicle for their date range.
BLOCKING_STATUSES = ('pending', 'active')

CHARGE_FLAGS = {
    'wash': 'is_washed',
    'damage': 'is_damaged',
    'delay': 'is_delayed',
}


class Sale(models.Model):
    """A single vehicle rental, from booking through return"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        Vehicle, on_delete=models.PROTECT, related_name='sales')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
        related_name='sales_created')

    # Customer
    customer_name = models.CharField(max_length=200)
    customer_phone = EncryptedCharField(max_length=50, null=True, blank=True)
    customer_destination = models.CharField(max_length=255, blank=True, default="")

    # Dates
    booking_date = models.DateTimeField(default=timezone.now)
    date_of_delivery = models.DateTimeField()
    return_date = models.DateTimeField()
    delivery_time_of_day = models.CharField(
        max_length=10, choices=TIME_OF_DAY_CHOICES, null=True, blank=True)
    return_time_of_day = models.CharField(
        max_length=10, choices=TIME_OF_DAY_CHOICES, null=True, blank=True)
    actual_date_of_delivery = models.DateTimeField(null=True, blank=True)
    actual_date_of_return = models.DateTimeField(null=True, blank=True)

    # Pricing
    charge_per_day = models.DecimalField(max_digits=12, decimal_places=2)
    charge_half_day = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    full_days = models.PositiveIntegerField(default=0)
    half_days = models.PositiveIntegerField(default=0)
    number_of_days = models.DecimalField(max_digits=8, decimal_places=1, default=0)
    discount = models.DecimalField(
        max_digits=12, decimal_places=2, default=0,
        help_text="Mirror of the discount charge")
    other_charges = models.DecimalField(
        max_digits=12, decimal_places=2, default=0,
        help_text="Credit deducted from the total")
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Status and tracking
    status = models.CharField(max_length=20, choices=SALE_STATUS, default='pending')
    payment_status = models.CharField(
        max_length=20, choices=SALE_PAYMENT_STATUS, default='unpaid')
    is_damaged = models.BooleanField(default=False)
    is_washed = models.BooleanField(default=False)
    is_delayed = models.BooleanField(default=False)
    remark = models.TextField(blank=True, null=True)

    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='sales_modified')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['vehicle', 'status']),
            models.Index(fields=['date_of_delivery', 'return_date']),
            models.Index(fields=['status', 'payment_status']),
        ]

    def __str__(self):
        return f"Sale {self.id} - {self.customer_name} ({self.status})"

    @property
    def company_id(self):
        return self.vehicle.company_id

    def charge_amounts(self):
        if self._state.adding:
            return {}
        return {c.charge_type: c.amount for c in self.charges.all()}

    def apply_pricing(self):
        """Recompute day counts, flags and total from dates, rate and charges."""
        days = calculate_rental_days(
            self.date_of_delivery, self.return_date,
            self.delivery_time_of_day, self.return_time_of_day,
        )
        charges = self.charge_amounts()
        total = calculate_total_amount(days, self.charge_per_day, charges, self.other_charges)
        if total < 0:
            raise ValidationError(
                {"total_amount": "Discounts and credits cannot exceed the rental amount."})

        self.full_days, self.half_days, self.number_of_days = days
        self.charge_half_day = half_day_rate(self.charge_per_day)
        self.discount = charges.get('discount', 0)
        for charge_type, flag in CHARGE_FLAGS.items():
            setattr(self, flag, charge_type in charges)
        self.total_amount = total
        return self

    def save(self, *args, **kwargs):
        self.apply_pricing()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {
                'full_days', 'half_days', 'number_of_days', 'charge_half_day',
                'discount', 'is_washed', 'is_damaged', 'is_delayed', 'total_amount',
                'updated_at',
            }
        super().save(*args, **kwargs)


class SalesCharge(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='charges')
    charge_type = models.CharField(max_length=20, choices=CHARGE_TYPES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    remark = models.CharField(max_length=255, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['charge_type']
        constraints = [
            models.UniqueConstraint(
                fields=['sale', 'charge_type'], name='one_charge_per_type'),
        ]

    def __str__(self):
        return f"{self.charge_type} {self.amount} on sale {self.sale_id}"


class Payment(models.Model):
    """Payment records for sales"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='payments')
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2)
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPES, default='booking')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS, default='cash')
    payment_status = models.CharField(
        max_length=20, choices=PAYMENT_STATUS, default='Pending')
    payment_date = models.DateTimeField(default=timezone.now)
    verified_by_admin = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='payments_verified')
    verified_at = models.DateTimeField(null=True, blank=True)
    remark = models.TextField(blank=True, null=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='payments_recorded')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-payment_date']

    def __str__(self):
        return f"Payment {self.id} - {self.amount_paid} ({self.payment_status})"


class SaleMedia(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='media')
    media_type = models.CharField(max_length=10, choices=MEDIA_TYPES)
    url = models.URLField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        verbose_name_plural = 'Sale media'

    def __str__(self):
        return f"{self.media_type} for sale {self.sale_id}"
