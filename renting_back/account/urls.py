from django.urls import path
from .views import (
    RegistrationView, LoginView, LogoutView, ProfileView, ChangePasswordView,
    SystemSettingListView, SystemSettingDetailView,
)

urlpatterns = [
    path("register", RegistrationView.as_view(), name="register"),
    path("login", LoginView.as_view(), name="login"),
    path("logout", LogoutView.as_view(), name="logout"),
    path("profile", ProfileView.as_view(), name="profile"),
    path("change-password", ChangePasswordView.as_view(), name="change_password"),
    path("system-settings", SystemSettingListView.as_view(), name="system_settings"),
    path("system-settings/<str:key>", SystemSettingDetailView.as_view(),
         name="system_setting_detail"),
]
