import logging

from django.contrib.auth import get_user_model

from rest_framework.views import APIView
from rest_framework import status, permissions
from rest_framework.exceptions import AuthenticationFailed, NotFound, PermissionDenied
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from backend_renting.permissions import IsCompanyAdmin
from backend_renting.responses import api_response
from .authentication import issue_tokens
from .models import Company, SystemSetting, SYSTEM_SETTING_KEYS
from .serializers import (
    RegistrationSerializer, LoginSerializer, UserSerializer,
    ProfileUpdateSerializer, ChangePasswordSerializer, SystemSettingSerializer,
)
from .system_settings import load_system_settings

logger = logging.getLogger(__name__)
User = get_user_model()


def get_company_by_code(code):
    try:
        return Company.objects.get(company_code=code)
    except Company.DoesNotExist:
        raise NotFound("Company not found.")


class SettingsAwareView(APIView):
    """Views gated by runtime toggles; tests swap ``settings_provider``."""
    settings_provider = staticmethod(load_system_settings)

    def get_system_settings(self):
        return self.settings_provider()


# ---------- Views ----------
class RegistrationView(SettingsAwareView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        if not self.get_system_settings().enable_registration:
            raise PermissionDenied("Registration is currently disabled.")

        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        company = get_company_by_code(serializer.validated_data["company_code"])
        serializer.context["company"] = company
        user = serializer.save()

        logger.info(f"Registered user {user.username} for company {company.company_code}")
        return api_response(
            UserSerializer(user).data,
            message="User registered successfully",
            status=status.HTTP_201_CREATED,
        )


class LoginView(SettingsAwareView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        if not self.get_system_settings().enable_login:
            raise PermissionDenied("Login is currently disabled.")

        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        company = get_company_by_code(data["company_code"])

        try:
            user = User.objects.get_by_mobile(company, data["mobile_number"])
        except User.DoesNotExist:
            user = None
        if user is None or not user.check_password(data["password"]):
            logger.warning(f"Failed login for company {company.company_code}")
            raise AuthenticationFailed("Invalid credentials.")
        if not user.is_active:
            raise AuthenticationFailed("User account is disabled.")

        return api_response({
            "tokens": issue_tokens(user),
            "user": UserSerializer(user).data,
        }, message="Login successful")


class LogoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get("refresh")
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError as exc:
                logger.info(f"Ignoring invalid refresh token on logout: {exc}")
        return api_response(message="Logged out")


class ProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return api_response(UserSerializer(request.user).data)

    def put(self, request):
        serializer = ProfileUpdateSerializer(
            request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return api_response(UserSerializer(user).data, message="Profile updated successfully")

    patch = put


class ChangePasswordView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        if not user.check_password(serializer.validated_data['old_password']):
            return api_response(
                message="Old password is incorrect.", status=status.HTTP_400_BAD_REQUEST)
        user.set_password(serializer.validated_data['new_password'])
        user.save()
        return api_response(message="Password changed successfully.")


class SystemSettingListView(SettingsAwareView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return api_response(self.get_system_settings().as_dict())


class SystemSettingDetailView(APIView):
    permission_classes = [IsCompanyAdmin]

    def put(self, request, key):
        if key not in dict(SYSTEM_SETTING_KEYS):
            raise NotFound(f"Unknown system setting '{key}'.")
        setting, _ = SystemSetting.objects.get_or_create(key=key)
        serializer = SystemSettingSerializer(setting, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save(updated_by=request.user)
        logger.info(f"System setting {key} set to {setting.is_enabled} by {request.user.username}")
        return api_response(serializer.data, message="System setting updated")


class HealthView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response({"healthy": True}, message="Service is running")
