from decimal import Decimal

from django.db import models
from django.conf import settings
from django.utils import timezone
import uuid

EXPENSE_TYPES = [
    ('maintenance', 'Maintenance'),
    ('insurance', 'Insurance'),
    ('fuel', 'Fuel'),
    ('cleaning', 'Cleaning'),
    ('repair', 'Repair'),
    ('salary', 'Salary'),
    ('office_supplies', 'Office Supplies'),
    ('utilities', 'Utilities'),
    ('rent', 'Rent'),
    ('marketing', 'Marketing'),
    ('other', 'Other'),
]


class Expense(models.Model):
    """Money going out of the business"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        'account.Company', on_delete=models.CASCADE, related_name='expenses')
    expense_type = models.CharField(max_length=50, choices=EXPENSE_TYPES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.TextField(blank=True, null=True)
    expense_date = models.DateTimeField(default=timezone.now)

    # Vehicle association (if applicable)
    vehicle = models.ForeignKey(
        'vehicle.Vehicle', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='expenses')

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='expenses_recorded')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-expense_date', '-created_at']
        indexes = [
            models.Index(fields=['company', 'expense_date']),
            models.Index(fields=['expense_type']),
        ]

    def __str__(self):
        return f"{self.expense_type} - {self.amount}"


class RevenueRecognition(models.Model):
    """A paid sale's total spread evenly over its rental days"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.OneToOneField(
        'sales.Sale', on_delete=models.CASCADE, related_name='revenue_recognition')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    start_date = models.DateField()
    end_date = models.DateField()
    daily_amount = models.DecimalField(max_digits=12, decimal_places=4)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_date']
        indexes = [
            models.Index(fields=['start_date', 'end_date']),
        ]

    def __str__(self):
        return f"Revenue {self.total_amount} for sale {self.sale_id}"

    @property
    def days(self):
        return (self.end_date - self.start_date).days + 1

    def save(self, *args, **kwargs):
        self.daily_amount = (Decimal(self.total_amount) / self.days).quantize(Decimal("0.0001"))
        super().save(*args, **kwargs)
