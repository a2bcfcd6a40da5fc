# account/serializers.py
from rest_framework import serializers
from django.contrib.auth import password_validation, get_user_model

from backend_renting.exceptions import Conflict
from .models import Company, SystemSetting, compute_hmac

User = get_user_model()


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ("id", "name", "company_code")


class UserSerializer(serializers.ModelSerializer):
    """
    For returning user data to frontend. Encrypted fields (names, mobile_number)
    are decrypted automatically by the field implementation when accessed.
    """
    company = CompanySerializer(read_only=True)
    is_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ("id", "username", "first_name", "last_name", "mobile_number",
                  "role", "is_admin", "company", "date_joined")
        read_only_fields = ("id", "role", "is_admin", "company", "date_joined")


def _ensure_unique(company, username=None, mobile_number=None, exclude_pk=None):
    users = User.objects.all()
    if exclude_pk is not None:
        users = users.exclude(pk=exclude_pk)
    if username and users.filter(username=username).exists():
        raise Conflict("A user with that username already exists.")
    if mobile_number and users.filter(
            company=company, mobile_hmac=compute_hmac(mobile_number)).exists():
        raise Conflict("A user with that mobile number already exists.")


class RegistrationSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)
    mobile_number = serializers.CharField(max_length=50)
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    company_code = serializers.CharField(max_length=50)

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value

    def create(self, validated_data):
        company = self.context["company"]
        validated_data.pop("company_code", None)
        _ensure_unique(company, validated_data["username"], validated_data["mobile_number"])

        # The first account of a company administers it.
        role = "staff" if company.users.exists() else "admin"
        password = validated_data.pop("password")
        return User.objects.create_user(
            password=password, company=company, role=role, **validated_data)


class LoginSerializer(serializers.Serializer):
    mobile_number = serializers.CharField()
    password = serializers.CharField(write_only=True)
    company_code = serializers.CharField()


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("username", "first_name", "last_name", "mobile_number")
        extra_kwargs = {
            # uniqueness is reported as a conflict by update()
            "username": {"validators": []},
        }

    def update(self, instance, validated_data):
        _ensure_unique(
            instance.company,
            validated_data.get("username"),
            validated_data.get("mobile_number"),
            exclude_pk=instance.pk,
        )
        return super().update(instance, validated_data)


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=8)

    def validate_new_password(self, value):
        password_validation.validate_password(value)
        return value


class SystemSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemSetting
        fields = ("key", "is_enabled", "description", "updated_at")
        read_only_fields = ("key", "updated_at")
