import pytest

from account.authentication import issue_tokens
from account.models import SystemSetting, User
from account.system_settings import SystemSettingsSnapshot
from account.views import LoginView, RegistrationView


REGISTRATION = {
    "username": "ram",
    "password": "Sup3r-Secret-pass",
    "mobile_number": "9812345678",
    "first_name": "Ram",
    "last_name": "Thapa",
    "company_code": "HIMAL",
}


@pytest.mark.django_db
def test_health_is_public(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.data == {"status": 200, "message": "Service is running", "data": {"healthy": True}}


def test_first_registration_becomes_admin(api_client, company):
    response = api_client.post("/api/register", REGISTRATION, format="json")

    assert response.status_code == 201
    body = response.data
    assert body["status"] == 201
    assert body["data"]["role"] == "admin"
    assert body["data"]["company"]["company_code"] == "HIMAL"

    second = dict(REGISTRATION, username="hari", mobile_number="9812345679")
    response = api_client.post("/api/register", second, format="json")
    assert response.data["data"]["role"] == "staff"


def test_registration_without_names(api_client, company):
    payload = {k: v for k, v in REGISTRATION.items() if k not in ("first_name", "last_name")}

    response = api_client.post("/api/register", payload, format="json")

    assert response.status_code == 201, response.data
    user = User.objects.get(username="ram")
    assert not user.first_name
    assert not user.last_name


def test_registration_with_unknown_company(api_client, company):
    response = api_client.post(
        "/api/register", dict(REGISTRATION, company_code="NOPE"), format="json")
    assert response.status_code == 404


def test_duplicate_mobile_is_conflict(api_client, admin_user):
    payload = dict(REGISTRATION, mobile_number=admin_user.mobile_number)
    response = api_client.post("/api/register", payload, format="json")
    assert response.status_code == 409
    assert response.data["status"] == 409


def test_registration_gated_by_settings(api_client, company, monkeypatch):
    monkeypatch.setattr(
        RegistrationView, "settings_provider",
        staticmethod(lambda: SystemSettingsSnapshot(enable_registration=False)))

    response = api_client.post("/api/register", REGISTRATION, format="json")

    assert response.status_code == 403
    assert not User.objects.filter(username="ram").exists()


def test_login_returns_tokens(api_client, admin_user):
    response = api_client.post("/api/login", {
        "mobile_number": "9800000001",
        "password": "Sup3r-Secret-pass",
        "company_code": "HIMAL",
    }, format="json")

    assert response.status_code == 200
    data = response.data["data"]
    assert set(data["tokens"]) == {"access", "refresh"}
    assert data["user"]["username"] == "admin"

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['tokens']['access']}")
    assert api_client.get("/api/profile").data["data"]["username"] == "admin"


def test_login_with_wrong_password(api_client, admin_user):
    response = api_client.post("/api/login", {
        "mobile_number": "9800000001",
        "password": "wrong-password",
        "company_code": "HIMAL",
    }, format="json")
    assert response.status_code == 401


def test_login_gated_by_settings(api_client, admin_user, monkeypatch):
    monkeypatch.setattr(
        LoginView, "settings_provider",
        staticmethod(lambda: SystemSettingsSnapshot(enable_login=False)))

    response = api_client.post("/api/login", {
        "mobile_number": "9800000001",
        "password": "Sup3r-Secret-pass",
        "company_code": "HIMAL",
    }, format="json")
    assert response.status_code == 403


def test_token_for_another_company_is_rejected(api_client, admin_user, other_company):
    tokens = issue_tokens(admin_user)
    admin_user.company = other_company
    admin_user.save()

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    assert api_client.get("/api/profile").status_code == 401


def test_requests_without_token_are_rejected(api_client, db):
    response = api_client.get("/api/vehicles")
    assert response.status_code == 401
    assert response.data["status"] == 401


def test_profile_update(staff_client, staff_user):
    response = staff_client.put(
        "/api/profile", {"first_name": "Gita", "mobile_number": "9800000099"}, format="json")

    assert response.status_code == 200
    staff_user.refresh_from_db()
    assert staff_user.first_name == "Gita"
    assert User.objects.get_by_mobile(staff_user.company, "9800000099") == staff_user


def test_profile_update_username_conflict(staff_client, admin_user):
    response = staff_client.put("/api/profile", {"username": "admin"}, format="json")
    assert response.status_code == 409


def test_change_password(staff_client, staff_user):
    response = staff_client.post("/api/change-password", {
        "old_password": "Sup3r-Secret-pass",
        "new_password": "An0ther-Secret-pass",
    }, format="json")
    assert response.status_code == 200
    staff_user.refresh_from_db()
    assert staff_user.check_password("An0ther-Secret-pass")


def test_logout_blacklists_refresh_token(staff_client, staff_user):
    tokens = issue_tokens(staff_user)
    response = staff_client.post("/api/logout", {"refresh": tokens["refresh"]}, format="json")
    assert response.status_code == 200


def test_system_settings_admin_update(admin_client, staff_client, api_client, company):
    assert staff_client.put(
        "/api/system-settings/enable_registration", {"is_enabled": False},
        format="json").status_code == 403

    response = admin_client.put(
        "/api/system-settings/enable_registration", {"is_enabled": False}, format="json")
    assert response.status_code == 200
    assert SystemSetting.objects.get(key="enable_registration").is_enabled is False

    listing = admin_client.get("/api/system-settings").data["data"]
    assert listing == {"enable_registration": False, "enable_login": True}

    # the stored toggle now gates registration
    assert api_client.post("/api/register", REGISTRATION, format="json").status_code == 403


def test_unknown_system_setting(admin_client):
    response = admin_client.put("/api/system-settings/enable_magic", {"is_enabled": True}, format="json")
    assert response.status_code == 404
