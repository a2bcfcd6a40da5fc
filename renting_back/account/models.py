# account/models.py
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.contrib.auth.base_user import BaseUserManager
from django.utils import timezone
from encrypted_fields.fields import EncryptedCharField
import uuid
import hmac
import hashlib
from django.conf import settings


ROLE_CHOICES = [
    ('admin', 'Admin'),
    ('accountant', 'Accountant'),
    ('staff', 'Staff'),
]

SYSTEM_SETTING_KEYS = [
    ('enable_registration', 'Enable registration'),
    ('enable_login', 'Enable login'),
]


def compute_hmac(value: str) -> str:
    """Return HMAC-SHA256 digest (hex) of value using SECRET_KEY.
       Used for irreversible lookup fields."""
    if not value:
        return ""
    key = settings.SECRET_KEY.encode("utf-8")
    return hmac.new(key, value.encode("utf-8"), digestmod=hashlib.sha256).hexdigest()


class Company(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    company_code = models.CharField(max_length=50, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Companies'

    def __str__(self):
        return f"{self.name} ({self.company_code})"


class UserManager(BaseUserManager):
    def create_user(self, username, password=None, **extra_fields):
        if not username:
            raise ValueError("Username field must be set")

        user = self.model(username=username, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("role", "admin")

        if not password:
            raise ValueError("Superusers must have a password")

        return self.create_user(username, password, **extra_fields)

    def get_by_mobile(self, company, mobile_number):
        return self.get(company=company, mobile_hmac=compute_hmac(mobile_number))


class User(AbstractBaseUser, PermissionsMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        Company, on_delete=models.PROTECT, related_name='users', null=True, blank=True)
    username = models.CharField(max_length=150, unique=True)

    # Encrypted Personally Identifiable Info
    first_name = EncryptedCharField(max_length=150, null=True, blank=True)
    last_name = EncryptedCharField(max_length=150, null=True, blank=True)
    mobile_number = EncryptedCharField(max_length=50, null=True, blank=True)

    # Non-reversible HMAC lookup (stored in plaintext)
    mobile_hmac = models.CharField(
        max_length=128, db_index=True, editable=False, blank=True)

    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default='staff')
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        ordering = ['username']
        constraints = [
            models.UniqueConstraint(
                fields=['company', 'mobile_hmac'], name='unique_mobile_per_company',
                condition=~models.Q(mobile_hmac="")),
        ]

    def save(self, *args, **kwargs):
        """
        Auto-compute mobile HMAC lookup field whenever mobile_number is set or changed.
        """
        self.mobile_hmac = compute_hmac(self.mobile_number)
        super().save(*args, **kwargs)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def __str__(self):
        return self.username


class SystemSetting(models.Model):
    """Runtime toggles read on every auth request."""
    key = models.CharField(max_length=64, choices=SYSTEM_SETTING_KEYS, unique=True)
    is_enabled = models.BooleanField(default=True)
    description = models.CharField(max_length=255, blank=True, default="")
    updated_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return f"{self.key}={'on' if self.is_enabled else 'off'}"
